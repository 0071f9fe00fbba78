"""Onboarding completion and immutable report generation."""

from __future__ import annotations

from aggregate.report_builder import build_report_snapshot
from core.constants import (
    APPLICANTS_COLLECTION,
    AVAILABILITY_COLLECTION,
    DRIVERS_COLLECTION,
    ONBOARDING_COMPLETED,
    REPORTS_COLLECTION,
    VERIFICATION_COLLECTION,
)
from core.errors import IdentityResolutionFailure, NotFoundError
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import Document, Identity
from identity.resolver import IdentityResolver, authenticated_email, normalize_email
from store.document_store import DocumentStore
from workflow.stage_backfill import refresh_progress_stage

_LOGGER = get_logger(__name__)


class OnboardingCompletion:
    """Marks onboarding complete and writes the ReportSnapshot."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def complete_onboarding(self, identity: Identity | None) -> Document:
        """Complete onboarding for the caller and persist a report.

        The profile is marked completed first, then a new report is
        created (never overwritten) and its id stored on the profile.

        Args:
            identity: Authenticated caller identity.

        Returns:
            The persisted ReportSnapshot.

        Raises:
            AuthError: If the identity is missing.
            NotFoundError: If no DriverProfile exists.
            OnboardStoreError: If the report id already exists.
        """
        email = authenticated_email(identity)
        canonical_key = normalize_email(email)
        try:
            doc_id = self._resolver.document_key(self._store, DRIVERS_COLLECTION, email)
        except IdentityResolutionFailure as error:
            raise NotFoundError(
                f"Driver data not found for {canonical_key}. "
                "Complete phone verification before finishing onboarding."
            ) from error
        moment = self._clock()
        now = to_iso(moment)
        profile = self._store.merge(
            DRIVERS_COLLECTION,
            doc_id,
            {"onboardingStatus": ONBOARDING_COMPLETED, "completedAt": now, "updatedAt": now},
        )
        report = build_report_snapshot(
            canonical_key,
            profile=profile,
            applicant=self._store.get(APPLICANTS_COLLECTION, canonical_key),
            availability=self._store.get(AVAILABILITY_COLLECTION, doc_id),
            verification=self._store.get(VERIFICATION_COLLECTION, doc_id),
            moment=moment,
        )
        self._store.create(REPORTS_COLLECTION, report["reportId"], report)
        refresh_progress_stage(
            self._store,
            doc_id,
            self._store.merge(DRIVERS_COLLECTION, doc_id, {"reportId": report["reportId"]}),
        )
        _LOGGER.info("onboarding_completed", email=canonical_key, report_id=report["reportId"])
        return report
