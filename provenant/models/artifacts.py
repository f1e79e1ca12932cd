"""Artifact record model (owner-controlled, never deleted)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Fields an owner may replace through ``ArtifactRegistry.update``.
DESCRIPTIVE_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "origin_location",
    "origin_date",
    "creator",
    "image_uri",
)


class Artifact(BaseModel):
    """A registered physical artifact.

    ``owner`` and ``registered_at`` are fixed at registration.  Only the
    descriptive fields change afterwards, and only all together.
    Provenance text (origin, dates, creator) is free-form and never parsed.
    """

    model_config = ConfigDict(frozen=True)

    artifact_id: int = Field(ge=1)
    name: str
    description: str
    origin_location: str
    origin_date: str
    creator: str  # attribution, not the owner
    owner: str
    registered_at: int = Field(ge=0)  # block height
    image_uri: str
