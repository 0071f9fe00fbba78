"""Administrative progress reset.

A reset must clear every alias of every flag. Clearing only canonical
names would leave a legacy alias asserting completion, and inference
would resume the applicant past stages they must now repeat.
"""

from __future__ import annotations

from admin.admin_users import AdminUser, require_permission
from core.constants import DRIVERS_COLLECTION, ONBOARDING_STARTED
from core.errors import IdentityResolutionFailure, NotFoundError
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import Document
from identity.resolver import IdentityResolver, normalize_email
from store.document_store import DocumentStore
from workflow.stage_backfill import refresh_progress_stage
from workflow.progress_stages import (
    LEGACY_FLAG_FIELDS,
    LEGACY_PROGRESS_FIELDS,
    STAGE_ALIASES,
    STAGE_ORDER,
    alias_field_names,
    progress_field,
)

_LOGGER = get_logger(__name__)


def reset_fields() -> dict[str, None]:
    """Return every progress field a reset nulls out.

    Covers flat alias flags, literal dotted alias keys, nested progress
    maps for every stage, legacy progress maps and acknowledgement
    timestamps, plus the canonical stage.
    """
    flat_flags, progress_maps = alias_field_names()
    names: list[str] = [*flat_flags, *progress_maps]
    names.extend(alias for aliases in STAGE_ALIASES.values() for alias in aliases if "." in alias)
    names.extend(progress_field(stage) for stage in STAGE_ORDER[1:-1])
    names.extend(LEGACY_PROGRESS_FIELDS)
    names.extend(LEGACY_FLAG_FIELDS)
    names.extend(("completedAt", "reportId", "progressStage"))
    return {name: None for name in dict.fromkeys(names)}


class ProgressReset:
    """Clears an applicant's onboarding progress so they start over."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def reset_progress(self, actor: AdminUser | None, email: str) -> Document:
        """Reset one applicant's progress.

        Personal and intake data are kept; availability and verification
        records are untouched.

        Args:
            actor: Admin performing the reset.
            email: Applicant email.

        Returns:
            The reset DriverProfile.

        Raises:
            AuthError: If there is no actor.
            PermissionDeniedError: If the actor cannot reset progress.
            NotFoundError: If the applicant has no DriverProfile.
        """
        admin = require_permission(actor, "reset_progress")
        try:
            doc_id = self._resolver.document_key(self._store, DRIVERS_COLLECTION, email)
        except IdentityResolutionFailure as error:
            raise NotFoundError(
                f"Driver not found for {normalize_email(email)}. Nothing to reset."
            ) from error
        now = to_iso(self._clock())
        fields: dict[str, object] = dict(reset_fields())
        fields.update(
            {
                "onboardingStatus": ONBOARDING_STARTED,
                "updatedAt": now,
                "resetAt": now,
                "resetBy": admin.email,
            }
        )
        document = refresh_progress_stage(
            self._store, doc_id, self._store.merge(DRIVERS_COLLECTION, doc_id, fields)
        )
        _LOGGER.info("progress_reset", email=normalize_email(email), actor=admin.email)
        return document
