"""Per-call execution context supplied by the host runtime."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CallContext(BaseModel):
    """Who is calling, and at which block height.

    ``caller`` is an opaque authenticated identity.  It is only ever compared
    for equality against stored identities, never parsed.
    """

    model_config = ConfigDict(frozen=True)

    caller: str
    block_height: int = Field(default=0, ge=0)
