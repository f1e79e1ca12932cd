"""Provenant data models: all Pydantic v2, all frozen (immutable)."""

from provenant.models.artifacts import DESCRIPTIVE_FIELDS, Artifact
from provenant.models.authentication import (
    MAX_CONFIDENCE_SCORE,
    MIN_CONFIDENCE_SCORE,
    AuthenticationRecord,
    Verifier,
)
from provenant.models.context import CallContext
from provenant.models.receipts import TransactionReceipt
from provenant.models.results import ErrorCode, OperationResult, RegistryError

__all__ = [
    # context
    "CallContext",
    # results
    "ErrorCode",
    "OperationResult",
    "RegistryError",
    # artifacts
    "Artifact",
    "DESCRIPTIVE_FIELDS",
    # authentication
    "Verifier",
    "AuthenticationRecord",
    "MIN_CONFIDENCE_SCORE",
    "MAX_CONFIDENCE_SCORE",
    # receipts
    "TransactionReceipt",
]
