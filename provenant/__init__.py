"""Provenant: provenance registries for physical artifacts.

Two identity-gated registries over a ledger-style key-value state store:
  - Artifact Registry: dense ids, caller-owned records, owner-only updates
  - Authentication Registry: admin-gated verifier roster, per-(artifact,
    verifier) attestations from active verifiers
  - Tagged results (forbidden / not_found / invalid_argument / state_corrupted)
  - In-memory and SQLite state stores
  - Serialized in-process host with block clock and hash-chained receipts
"""

__version__ = "0.1.0"
__description__ = "Provenance registries for physical artifacts on a ledger-style state store"

from provenant.core.artifact_registry import ArtifactRegistry
from provenant.core.authentication_registry import AuthenticationRegistry
from provenant.core.host import LedgerHost
from provenant.core.state_store import InMemoryStateStore, SqliteStateStore
from provenant.models.context import CallContext
from provenant.models.results import ErrorCode, OperationResult

__all__ = [
    "ArtifactRegistry",
    "AuthenticationRegistry",
    "LedgerHost",
    "InMemoryStateStore",
    "SqliteStateStore",
    "CallContext",
    "ErrorCode",
    "OperationResult",
    "__version__",
]
