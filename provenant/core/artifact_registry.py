"""Artifact Registry: owner-controlled artifact records.

Anyone may register an artifact; the caller becomes its owner.  Only the
owner may later replace its descriptive fields.  Identifiers are dense
integers starting at 1, assigned from a single persisted counter.

States: absent -> registered (once, via ``register``); registered ->
registered (via owner ``update``).  There is no delete.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from provenant.core.keys import ARTIFACT_COUNTER_KEY, artifact_key
from provenant.core.state_store import (
    StateCorruptedError,
    StateStore,
    StateView,
    load_record,
    save_record,
)
from provenant.models.artifacts import DESCRIPTIVE_FIELDS, Artifact
from provenant.models.context import CallContext
from provenant.models.results import ErrorCode, OperationResult

logger = logging.getLogger(__name__)


class ArtifactRegistry:
    """Registers, reads, and updates artifact records.

    Parameters
    ----------
    store:
        The state store holding the counter and the artifact records.
        The registry owns the ``artifact:*`` key namespace exclusively.
        Registries on stores sharing one backing file never hand out the
        same id: each mutation runs in a single store transaction.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(
        self,
        ctx: CallContext,
        name: str,
        description: str,
        origin_location: str,
        origin_date: str,
        creator: str,
        image_uri: str,
    ) -> OperationResult:
        """Register a new artifact owned by the caller.

        The result value is the new ``artifact_id``.  Fails with
        ``INVALID_ARGUMENT`` when a descriptive field is not a string.
        """
        fields = dict(zip(
            DESCRIPTIVE_FIELDS,
            (name, description, origin_location, origin_date, creator, image_uri),
        ))
        with self._store.transaction() as txn:
            try:
                new_id = _read_counter(txn) + 1
            except StateCorruptedError as exc:
                logger.exception("Artifact counter unreadable; registration aborted.")
                return OperationResult.failure(ErrorCode.STATE_CORRUPTED, str(exc))

            try:
                artifact = Artifact(
                    artifact_id=new_id,
                    owner=ctx.caller,
                    registered_at=ctx.block_height,
                    **fields,
                )
            except ValidationError as exc:
                logger.warning("Registration rejected: %d invalid field(s).", exc.error_count())
                return OperationResult.invalid_argument(exc)

            # Counter and record commit together.
            txn.set(ARTIFACT_COUNTER_KEY, new_id)
            save_record(txn, artifact_key(new_id), artifact)

        logger.info(
            "Registered artifact %d '%s' for owner %s at block %d.",
            new_id, artifact.name, ctx.caller, ctx.block_height,
        )
        return OperationResult.success(new_id)

    def update(
        self,
        ctx: CallContext,
        artifact_id: int,
        name: str,
        description: str,
        origin_location: str,
        origin_date: str,
        creator: str,
        image_uri: str,
    ) -> OperationResult:
        """Replace all descriptive fields of an artifact.

        Fails with ``NOT_FOUND`` for an unknown id and ``FORBIDDEN`` when the
        caller is not the owner.  ``owner`` and ``registered_at`` are kept.
        """
        fields = dict(zip(
            DESCRIPTIVE_FIELDS,
            (name, description, origin_location, origin_date, creator, image_uri),
        ))
        with self._store.transaction() as txn:
            try:
                current = load_record(txn, artifact_key(artifact_id), Artifact)
            except StateCorruptedError as exc:
                logger.exception("Artifact %s unreadable; update aborted.", artifact_id)
                return OperationResult.failure(ErrorCode.STATE_CORRUPTED, str(exc))

            if current is None:
                logger.warning("Update rejected: artifact %s not found.", artifact_id)
                return OperationResult.failure(
                    ErrorCode.NOT_FOUND, f"Artifact {artifact_id} does not exist"
                )

            if ctx.caller != current.owner:
                logger.warning(
                    "Update rejected: %s is not the owner of artifact %d.",
                    ctx.caller, current.artifact_id,
                )
                return OperationResult.failure(
                    ErrorCode.FORBIDDEN,
                    f"Only the owner may update artifact {artifact_id}",
                )

            try:
                updated = Artifact.model_validate({**current.model_dump(), **fields})
            except ValidationError as exc:
                logger.warning(
                    "Update of artifact %d rejected: %d invalid field(s).",
                    current.artifact_id, exc.error_count(),
                )
                return OperationResult.invalid_argument(exc)
            save_record(txn, artifact_key(artifact_id), updated)

        logger.info("Updated artifact %d at block %d.", updated.artifact_id, ctx.block_height)
        return OperationResult.success(True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, artifact_id: int) -> Artifact | None:
        """Return the artifact, or ``None`` if the id was never assigned."""
        return load_record(self._store, artifact_key(artifact_id), Artifact)

    def last_artifact_id(self) -> int:
        """Return the most recently assigned id (0 before any registration)."""
        return _read_counter(self._store)


def _read_counter(view: StateView) -> int:
    raw = view.get(ARTIFACT_COUNTER_KEY)
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise StateCorruptedError(ARTIFACT_COUNTER_KEY, f"not a counter: {raw!r}")
    return raw
