"""In-process ledger host: serialized execution over both registries.

The host plays the part of the external runtime: it authenticates nothing
itself, but it stamps every call with the caller identity and the current
block height, runs calls one at a time, and journals a receipt for each.

Usage::

    host = LedgerHost(InMemoryStateStore(), deployer="ST1...")
    result = host.execute("ST1...", host.artifacts.register,
                          "Ancient Vase", "...", "China", "1500 CE",
                          "Unknown", "https://example.com/vase.jpg")
    host.advance_blocks()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from provenant.config import ProvenantConfig
from provenant.core.artifact_registry import ArtifactRegistry
from provenant.core.authentication_registry import AuthenticationRegistry
from provenant.core.hasher import compute_arguments_hash
from provenant.core.keys import BLOCK_HEIGHT_KEY
from provenant.core.receipt_journal import ReceiptJournal
from provenant.core.state_store import (
    InMemoryStateStore,
    SqliteStateStore,
    StateCorruptedError,
    StateStore,
    StateView,
)
from provenant.models.context import CallContext
from provenant.models.receipts import TransactionReceipt
from provenant.models.results import OperationResult

logger = logging.getLogger(__name__)

Operation = Callable[..., OperationResult]


class LedgerHost:
    """Runs registry operations under a single writer lock.

    Parameters
    ----------
    store:
        Shared state store for both registries and the block clock.
    deployer:
        Identity that becomes admin when the store is fresh.
    receipts:
        Optional journal receiving one receipt per executed call.
    genesis_block_height:
        Starting height for a store that has no persisted height yet.
    """

    def __init__(
        self,
        store: StateStore,
        *,
        deployer: str,
        receipts: ReceiptJournal | None = None,
        genesis_block_height: int = 0,
    ) -> None:
        if genesis_block_height < 0:
            raise ValueError("genesis_block_height must be non-negative")
        self._store = store
        self._receipts = receipts
        self._lock = threading.RLock()
        with self._store.transaction() as txn:
            if not txn.has(BLOCK_HEIGHT_KEY):
                txn.set(BLOCK_HEIGHT_KEY, genesis_block_height)
        self.artifacts = ArtifactRegistry(store)
        self.authentication = AuthenticationRegistry(store, deployer)

    @classmethod
    def from_config(cls, config: ProvenantConfig | None = None) -> LedgerHost:
        """Build a host from settings (environment-driven by default)."""
        config = config or ProvenantConfig()
        logging.getLogger("provenant").setLevel(config.log_level.upper())

        store: StateStore
        if config.state_backend == "sqlite":
            store = SqliteStateStore(config.state_path)
        else:
            store = InMemoryStateStore()

        receipts = ReceiptJournal(config.receipts_path) if config.journal_receipts else None
        logger.info(
            "Starting ledger host (environment=%s, backend=%s, receipts=%s).",
            config.environment, config.state_backend, bool(receipts),
        )
        return cls(
            store,
            deployer=config.deployer_identity,
            receipts=receipts,
            genesis_block_height=config.genesis_block_height,
        )

    # ------------------------------------------------------------------
    # Block clock
    # ------------------------------------------------------------------

    @property
    def block_height(self) -> int:
        return _read_height(self._store)

    def advance_blocks(self, count: int = 1) -> int:
        """Move the clock forward by *count* blocks and return the new height."""
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        with self._store.transaction() as txn:
            height = _read_height(txn) + count
            txn.set(BLOCK_HEIGHT_KEY, height)
        logger.debug("Advanced to block %d.", height)
        return height

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def context_for(self, caller: str) -> CallContext:
        """Build the context a call by *caller* would run with right now."""
        return CallContext(caller=caller, block_height=self.block_height)

    def execute(
        self, caller: str, operation: Operation, *args: Any, **kwargs: Any
    ) -> OperationResult:
        """Run *operation* as *caller* at the current block height.

        *operation* is a bound mutating registry method such as
        ``host.artifacts.register``; the context is passed as its first
        argument.  The call and its receipt are serialized with every
        other call on this host.

        The operation's state change commits before its receipt is
        journaled.  A journal failure is logged and does not change the
        returned result, which always reflects the committed state.
        """
        with self._lock:
            ctx = self.context_for(caller)
            result = operation(ctx, *args, **kwargs)
            if self._receipts is not None:
                name = getattr(operation, "__qualname__", repr(operation))
                try:
                    self._receipts.append(
                        TransactionReceipt(
                            caller=caller,
                            block_height=ctx.block_height,
                            operation=name,
                            arguments_hash=compute_arguments_hash(args, kwargs),
                            succeeded=result.ok,
                            error_code=result.error.value if result.error else "",
                        )
                    )
                except Exception:
                    logger.exception(
                        "Receipt for %s by %s at block %d was not journaled.",
                        name, caller, ctx.block_height,
                    )
        return result

    @property
    def receipts(self) -> ReceiptJournal | None:
        return self._receipts


def _read_height(view: StateView) -> int:
    raw = view.get(BLOCK_HEIGHT_KEY)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise StateCorruptedError(BLOCK_HEIGHT_KEY, f"not a block height: {raw!r}")
    return raw
