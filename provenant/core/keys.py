"""State store key layout.

Each registry owns its own key namespace.  Composite keys embed the
canonical JSON of their parts, so no identity string (whatever characters
it contains) can make two distinct pairs map to the same key.
"""

from __future__ import annotations

from provenant.core.hasher import canonical_json_text

ARTIFACT_COUNTER_KEY = "artifact:last-id"
ADMIN_KEY = "auth:admin"
BLOCK_HEIGHT_KEY = "host:block-height"


def artifact_key(artifact_id: int) -> str:
    return f"artifact:{artifact_id}"


def verifier_key(identity: str) -> str:
    return f"verifier:{identity}"


def authentication_key(artifact_id: int, verifier: str) -> str:
    """Composite key for one verifier's attestation on one artifact."""
    return "authentication:" + canonical_json_text([artifact_id, verifier])
