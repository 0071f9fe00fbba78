"""Write-once policy acknowledgements on the DriverProfile.

An acknowledgement sets every known alias flag of its policy plus a
timestamp. The alias-group check and the write run as one conditional
merge, so concurrent first calls record exactly one timestamp and every
later call reports ``already_acknowledged`` without writing.
"""

from __future__ import annotations

from enum import Enum

from core.constants import DRIVERS_COLLECTION
from core.errors import LedgerWriteFailure, OnboardStoreError
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import AcknowledgementResult, Document, Identity
from identity.resolver import IdentityResolver, authenticated_email, normalize_email
from store.document_store import DocumentStore
from workflow.profile_adapter import is_stage_asserted
from workflow.progress_stages import STAGE_ALIASES, Stage
from workflow.stage_backfill import refresh_progress_stage

_LOGGER = get_logger(__name__)


class AcknowledgementPolicy(str, Enum):
    """Policies recorded through the ledger."""

    FEE_STRUCTURE = "fee_structure"
    LIABILITIES = "liabilities"
    CANCELLATION_POLICY = "cancellation_policy"
    PAYMENT_CYCLE_SCHEDULE = "payment_cycle_schedule"


POLICY_STAGES: dict[AcknowledgementPolicy, Stage] = {
    AcknowledgementPolicy.FEE_STRUCTURE: Stage.FEE_STRUCTURE,
    AcknowledgementPolicy.LIABILITIES: Stage.LIABILITIES,
    AcknowledgementPolicy.CANCELLATION_POLICY: Stage.CANCELLATION_POLICY,
    AcknowledgementPolicy.PAYMENT_CYCLE_SCHEDULE: Stage.PAYMENT_CYCLE_SCHEDULE,
}

POLICY_TIMESTAMP_FIELDS: dict[AcknowledgementPolicy, str] = {
    AcknowledgementPolicy.FEE_STRUCTURE: "feeStructureAcknowledgedAt",
    AcknowledgementPolicy.LIABILITIES: "liabilitiesAcknowledgedAt",
    AcknowledgementPolicy.CANCELLATION_POLICY: "cancellationPolicyAcknowledgedAt",
    AcknowledgementPolicy.PAYMENT_CYCLE_SCHEDULE: "paymentCycleScheduleAcknowledgedAt",
}


def parse_policy(raw_policy: str) -> AcknowledgementPolicy:
    """Parse a policy name such as ``fee-structure`` or ``FeeStructure``.

    Raises:
        ValueError: If the name matches no policy.
    """
    compact = raw_policy.strip().replace("-", "").replace("_", "").lower()
    for policy in AcknowledgementPolicy:
        if policy.value.replace("_", "") == compact:
            return policy
    supported = ", ".join(policy.value for policy in AcknowledgementPolicy)
    raise ValueError(f"Unsupported policy '{raw_policy}'. Use one of: {supported}.")


def acknowledgement_fields(policy: AcknowledgementPolicy, timestamp: str) -> Document:
    """Build the merge payload for one policy acknowledgement.

    Args:
        policy: Policy being acknowledged.
        timestamp: ISO timestamp for the acknowledgement.

    Returns:
        Flat alias flags set to True, nested progress aliases as
        ``{confirmed, confirmedAt}`` maps, the policy timestamp and
        ``updatedAt``.
    """
    fields: Document = {}
    for alias in STAGE_ALIASES[POLICY_STAGES[policy]]:
        head, _, nested = alias.partition(".")
        if nested:
            fields[head] = {nested: True, f"{nested}At": timestamp}
        else:
            fields[head] = True
    fields[POLICY_TIMESTAMP_FIELDS[policy]] = timestamp
    fields["updatedAt"] = timestamp
    return fields


class AcknowledgementLedger:
    """Idempotent recorder of policy acknowledgements."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def acknowledge(
        self,
        policy: AcknowledgementPolicy,
        identity: Identity | None,
    ) -> AcknowledgementResult:
        """Record a policy acknowledgement exactly once.

        Args:
            policy: Policy being acknowledged.
            identity: Authenticated caller identity.

        Returns:
            ``success=True`` always; ``already_acknowledged`` is True when
            any alias of the policy was already set and nothing was written.

        Raises:
            AuthError: If the identity is missing or has no email.
            LedgerWriteFailure: If the conditional write cannot be persisted.
        """
        email = authenticated_email(identity)
        canonical_key = normalize_email(email)
        stage = POLICY_STAGES[policy]
        try:
            doc_id = self._resolver.write_key(self._store, DRIVERS_COLLECTION, email)
            written = self._store.merge_if(
                DRIVERS_COLLECTION,
                doc_id,
                lambda current: current is None or not is_stage_asserted(current, stage),
                acknowledgement_fields(policy, to_iso(self._clock())),
            )
            if written:
                refresh_progress_stage(
                    self._store, doc_id, self._store.get(DRIVERS_COLLECTION, doc_id) or {}
                )
        except (OnboardStoreError, OSError) as error:
            raise LedgerWriteFailure(
                f"Failed to record {policy.value} acknowledgement for {canonical_key}: {error}. "
                "Retry the acknowledgement; duplicates are safe."
            ) from error
        if written:
            _LOGGER.info("acknowledgement_recorded", policy=policy.value, email=canonical_key)
        else:
            _LOGGER.info("acknowledgement_already_recorded", policy=policy.value, email=canonical_key)
        return AcknowledgementResult(success=True, already_acknowledged=not written)
