"""Verifier roster and authentication attestation models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MIN_CONFIDENCE_SCORE = 0
MAX_CONFIDENCE_SCORE = 100


class Verifier(BaseModel):
    """A credentialed third party allowed to attest to artifacts.

    ``active`` gates new attestations only.  Attestations written while the
    verifier was active stay readable after deactivation.
    """

    model_config = ConfigDict(frozen=True)

    identity: str
    name: str
    organization: str
    credentials: str
    active: bool = True


class AuthenticationRecord(BaseModel):
    """One verifier's attestation for one artifact.

    Keyed by ``(artifact_id, verifier)``; a later submission for the same
    pair replaces this record.  ``verifier_credentials`` are the
    qualifications claimed for this attestation and are independent of the
    ``Verifier.credentials`` on the roster.
    """

    model_config = ConfigDict(frozen=True)

    artifact_id: int
    verifier: str
    is_authentic: bool
    confidence_score: int = Field(ge=MIN_CONFIDENCE_SCORE, le=MAX_CONFIDENCE_SCORE)
    verification_date: int = Field(ge=0)  # block height
    methodology: str
    verifier_credentials: str
    report_uri: str
