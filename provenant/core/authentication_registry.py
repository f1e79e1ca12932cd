"""Authentication Registry: admin-gated verifier roster and attestations.

Roles
-----
* **admin**: a single identity, initially the deployer.  Only the admin
  may register verifiers, toggle their status, or hand the role over.
* **verifier**: an identity holding an active roster record.  Only an
  active verifier may submit attestations, and only under its own identity.

``register_verifier`` binds the new roster record to the caller itself,
so through this call path only the admin can hold a verifier record.

Attestations are keyed by ``(artifact_id, verifier)``.  A resubmission by
the same verifier replaces its earlier attestation; other verifiers'
attestations for the same artifact are untouched.  Artifact ids are not
checked against the Artifact Registry.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from provenant.core.keys import ADMIN_KEY, authentication_key, verifier_key
from provenant.core.state_store import (
    StateCorruptedError,
    StateStore,
    StateView,
    load_record,
    save_record,
)
from provenant.models.authentication import (
    MAX_CONFIDENCE_SCORE,
    MIN_CONFIDENCE_SCORE,
    AuthenticationRecord,
    Verifier,
)
from provenant.models.context import CallContext
from provenant.models.results import ErrorCode, OperationResult

logger = logging.getLogger(__name__)


class AuthenticationRegistry:
    """Manages verifiers, the admin role, and authentication records.

    Parameters
    ----------
    store:
        The state store.  The registry owns the ``verifier:*``,
        ``authentication:*`` and ``auth:admin`` keys exclusively.
    deployer:
        Identity that becomes admin when the store holds no admin yet.
        Ignored for a store that already has one.
    """

    def __init__(self, store: StateStore, deployer: str) -> None:
        self._store = store
        with self._store.transaction() as txn:
            if not txn.has(ADMIN_KEY):
                txn.set(ADMIN_KEY, deployer)
                logger.info("Admin initialized to deployer %s.", deployer)

    # ------------------------------------------------------------------
    # Verifier roster (admin-gated)
    # ------------------------------------------------------------------

    def register_verifier(
        self,
        ctx: CallContext,
        name: str,
        organization: str,
        credentials: str,
    ) -> OperationResult:
        """Create or overwrite the caller's verifier record, marked active.

        Fails with ``FORBIDDEN`` unless the caller is the admin.
        """
        with self._store.transaction() as txn:
            denied = _require_admin(txn, ctx, "register a verifier")
            if denied is not None:
                return denied

            try:
                verifier = Verifier(
                    identity=ctx.caller,
                    name=name,
                    organization=organization,
                    credentials=credentials,
                    active=True,
                )
            except ValidationError as exc:
                logger.warning(
                    "Verifier registration rejected: %d invalid field(s).", exc.error_count()
                )
                return OperationResult.invalid_argument(exc)
            save_record(txn, verifier_key(ctx.caller), verifier)

        logger.info("Registered verifier %s (%s).", ctx.caller, organization)
        return OperationResult.success(True)

    def update_verifier_status(
        self,
        ctx: CallContext,
        identity: str,
        active: bool,
    ) -> OperationResult:
        """Activate or deactivate a verifier.

        The admin check comes first, then the roster lookup.  All other
        fields of the verifier record are preserved.
        """
        with self._store.transaction() as txn:
            denied = _require_admin(txn, ctx, "change verifier status")
            if denied is not None:
                return denied

            try:
                verifier = load_record(txn, verifier_key(identity), Verifier)
            except StateCorruptedError as exc:
                logger.exception("Verifier %s unreadable; status change aborted.", identity)
                return OperationResult.failure(ErrorCode.STATE_CORRUPTED, str(exc))

            if verifier is None:
                logger.warning("Status change rejected: %s is not a verifier.", identity)
                return OperationResult.failure(
                    ErrorCode.NOT_FOUND, f"No verifier record for {identity}"
                )

            if not isinstance(active, bool):
                logger.warning("Status change rejected: active=%r is not a flag.", active)
                return OperationResult.failure(
                    ErrorCode.INVALID_ARGUMENT, f"active must be a bool, got {active!r}"
                )
            save_record(txn, verifier_key(identity), verifier.model_copy(update={"active": active}))

        logger.info(
            "Verifier %s is now %s.", identity, "active" if active else "inactive"
        )
        return OperationResult.success(True)

    def get_verifier(self, identity: str) -> Verifier | None:
        """Return the verifier record for *identity*, or ``None``."""
        return load_record(self._store, verifier_key(identity), Verifier)

    # ------------------------------------------------------------------
    # Attestations (active-verifier-gated)
    # ------------------------------------------------------------------

    def verify_artifact(
        self,
        ctx: CallContext,
        artifact_id: int,
        is_authentic: bool,
        confidence_score: int,
        methodology: str,
        verifier_credentials: str,
        report_uri: str,
    ) -> OperationResult:
        """Write the caller's attestation for *artifact_id*.

        Checks run in a fixed order and the first failure wins:

        1. ``NOT_FOUND``: caller has no verifier record.
        2. ``FORBIDDEN``: the record is inactive.
        3. ``INVALID_ARGUMENT``: score is not an integer in ``[0, 100]``,
           or another field does not fit the attestation record.
        """
        with self._store.transaction() as txn:
            try:
                verifier = load_record(txn, verifier_key(ctx.caller), Verifier)
            except StateCorruptedError as exc:
                logger.exception("Verifier %s unreadable; attestation aborted.", ctx.caller)
                return OperationResult.failure(ErrorCode.STATE_CORRUPTED, str(exc))

            if verifier is None:
                logger.warning("Attestation rejected: %s is not a verifier.", ctx.caller)
                return OperationResult.failure(
                    ErrorCode.NOT_FOUND, f"No verifier record for {ctx.caller}"
                )

            if not verifier.active:
                logger.warning("Attestation rejected: verifier %s is inactive.", ctx.caller)
                return OperationResult.failure(
                    ErrorCode.FORBIDDEN, f"Verifier {ctx.caller} is inactive"
                )

            if (
                isinstance(confidence_score, bool)
                or not isinstance(confidence_score, int)
                or not MIN_CONFIDENCE_SCORE <= confidence_score <= MAX_CONFIDENCE_SCORE
            ):
                logger.warning(
                    "Attestation rejected: confidence score %r out of range.",
                    confidence_score,
                )
                return OperationResult.failure(
                    ErrorCode.INVALID_ARGUMENT,
                    f"confidence_score must be an integer within "
                    f"[{MIN_CONFIDENCE_SCORE}, {MAX_CONFIDENCE_SCORE}], "
                    f"got {confidence_score!r}",
                )

            try:
                record = AuthenticationRecord(
                    artifact_id=artifact_id,
                    verifier=ctx.caller,
                    is_authentic=is_authentic,
                    confidence_score=confidence_score,
                    verification_date=ctx.block_height,
                    methodology=methodology,
                    verifier_credentials=verifier_credentials,
                    report_uri=report_uri,
                )
            except ValidationError as exc:
                logger.warning("Attestation rejected: %d invalid field(s).", exc.error_count())
                return OperationResult.invalid_argument(exc)
            save_record(
                txn, authentication_key(record.artifact_id, record.verifier), record
            )

        logger.info(
            "Verifier %s attested artifact %d (authentic=%s, confidence=%d).",
            ctx.caller, record.artifact_id, record.is_authentic, record.confidence_score,
        )
        return OperationResult.success(True)

    def get_authentication(
        self, artifact_id: int, verifier: str
    ) -> AuthenticationRecord | None:
        """Return *verifier*'s attestation for *artifact_id*, or ``None``."""
        return load_record(
            self._store,
            authentication_key(artifact_id, verifier),
            AuthenticationRecord,
        )

    # ------------------------------------------------------------------
    # Admin singleton
    # ------------------------------------------------------------------

    def set_admin(self, ctx: CallContext, new_admin: str) -> OperationResult:
        """Hand the admin role to *new_admin*.  Admin-only."""
        with self._store.transaction() as txn:
            denied = _require_admin(txn, ctx, "transfer the admin role")
            if denied is not None:
                return denied
            if not isinstance(new_admin, str):
                logger.warning("Admin transfer rejected: %r is not an identity.", new_admin)
                return OperationResult.failure(
                    ErrorCode.INVALID_ARGUMENT, f"new_admin must be a string, got {new_admin!r}"
                )
            txn.set(ADMIN_KEY, new_admin)

        logger.info("Admin role transferred from %s to %s.", ctx.caller, new_admin)
        return OperationResult.success(True)

    def get_admin(self) -> str:
        """Return the current admin identity."""
        return _read_admin(self._store)


def _read_admin(view: StateView) -> str:
    raw = view.get(ADMIN_KEY)
    if not isinstance(raw, str):
        raise StateCorruptedError(ADMIN_KEY, f"not an identity: {raw!r}")
    return raw


def _require_admin(view: StateView, ctx: CallContext, action: str) -> OperationResult | None:
    """Return a failure result unless the caller is the admin."""
    try:
        admin = _read_admin(view)
    except StateCorruptedError as exc:
        logger.exception("Admin record unreadable.")
        return OperationResult.failure(ErrorCode.STATE_CORRUPTED, str(exc))
    if ctx.caller != admin:
        logger.warning("%s may not %s: admin only.", ctx.caller, action)
        return OperationResult.failure(
            ErrorCode.FORBIDDEN, f"Only the admin may {action}"
        )
    return None
