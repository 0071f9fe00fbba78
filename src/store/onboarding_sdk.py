"""Python SDK for onboarding operations.

This module exposes high-level APIs for intake, progress, policy
acknowledgements, aggregation and admin workflows backed by the
document store.
"""

from __future__ import annotations

from typing import Iterable

from admin.admin_users import (
    AdminDirectory,
    AdminRole,
    AdminUser,
    ApplicationStatus,
    require_permission,
)
from aggregate.dashboard_stats import compute_stats
from aggregate.projector import AggregationProjector, MergedView
from core.config import OnboardConfig
from core.constants import DRIVERS_COLLECTION
from core.errors import IdentityResolutionFailure, OnboardConfigError
from core.logging_config import get_logger
from core.timestamps import Clock, utc_now
from core.types import (
    AcknowledgementResult,
    ApplicantRecord,
    ApplicationStats,
    CanonicalKey,
    Document,
    EmailCheckResult,
    Identity,
    PhoneVerificationResult,
)
from identity.resolver import IdentityResolver, normalize_email
from intake.applicant_intake import ApplicantIntake
from intake.batch_loader import load_applicant_batch
from store.document_store import DocumentStore
from workflow.acknowledgement_ledger import AcknowledgementLedger, AcknowledgementPolicy
from workflow.completion import OnboardingCompletion
from workflow.progress_reset import ProgressReset
from workflow.progress_stages import Stage
from workflow.progress_state import ProgressPosition, resolve_progress
from workflow.stage_backfill import BackfillSummary, backfill_progress_stages
from workflow.step_recorder import StepRecorder

_LOGGER = get_logger(__name__)


class OnboardingClient:
    """Primary SDK entry point for onboarding workflows."""

    def __init__(self, config: OnboardConfig | None = None, clock: Clock = utc_now) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            clock: Time source for every write and "now" fallback.
        """
        self._config = config or OnboardConfig.from_env()
        self._store = DocumentStore(self._config)
        self._resolver = IdentityResolver()
        self._intake = ApplicantIntake(self._store, self._resolver, clock)
        self._ledger = AcknowledgementLedger(self._store, self._resolver, clock)
        self._steps = StepRecorder(self._store, self._resolver, clock)
        self._completion = OnboardingCompletion(self._store, self._resolver, clock)
        self._reset = ProgressReset(self._store, self._resolver, clock)
        self._admins = AdminDirectory(self._store, self._resolver, clock)
        self._projector = AggregationProjector(self._store, self._resolver, clock)

    @property
    def store(self) -> DocumentStore:
        """Return the underlying document store."""
        return self._store

    def record_applicant(self, record: ApplicantRecord) -> CanonicalKey:
        """Upsert one intake record.

        Raises:
            OnboardIntakeError: If the record has no usable email.
        """
        return self._intake.record_applicant(record)

    def load_applicants(self, batch_path: str) -> list[CanonicalKey]:
        """Load a YAML applicant batch and upsert every record.

        Args:
            batch_path: YAML batch file path.

        Returns:
            Canonical keys in file order.

        Raises:
            OnboardIntakeError: If the batch file is invalid.
        """
        records = load_applicant_batch(batch_path)
        keys = [self._intake.record_applicant(record) for record in records]
        _LOGGER.info("applicant_batch_loaded", path=batch_path, records=len(keys))
        return keys

    def check_email(self, email: str) -> EmailCheckResult:
        """Return basic applicant info for an email."""
        return self._intake.check_email(email)

    def verify_phone(self, email: str, phone: str) -> PhoneVerificationResult:
        """Verify an applicant's phone, opening their DriverProfile."""
        return self._intake.verify_phone(email, phone)

    def progress(self, email: str) -> ProgressPosition:
        """Resolve an applicant's onboarding position.

        Applicants without a DriverProfile resolve to WELCOME. Out-of-order
        completions are logged when progress warnings are enabled.

        Args:
            email: Applicant email in any casing.

        Returns:
            Resolved position.
        """
        try:
            doc_id = self._resolver.document_key(self._store, DRIVERS_COLLECTION, email)
        except IdentityResolutionFailure:
            return resolve_progress({})
        position = resolve_progress(self._store.get(DRIVERS_COLLECTION, doc_id))
        if position.warnings and self._config.progress_warnings:
            _LOGGER.warning(
                "progress_out_of_order",
                email=normalize_email(doc_id),
                asserted_stage=position.current_stage.value,
                missing_stages=[warning.missing_stage.value for warning in position.warnings],
            )
        return position

    def acknowledge(
        self,
        policy: AcknowledgementPolicy,
        identity: Identity | None,
    ) -> AcknowledgementResult:
        """Record a policy acknowledgement exactly once."""
        return self._ledger.acknowledge(policy, identity)

    def record_step(
        self,
        identity: Identity | None,
        step: Stage | str,
        data: dict[str, object] | None = None,
    ) -> Document:
        """Mark one onboarding step confirmed."""
        return self._steps.record_step(identity, step, data)

    def save_availability(self, identity: Identity | None, availability: dict[str, object]) -> Document:
        """Replace the caller's availability."""
        return self._steps.save_availability(identity, availability)

    def save_verification(self, identity: Identity | None, verification: dict[str, object]) -> Document:
        """Merge the caller's vehicle verification details."""
        return self._steps.save_verification(identity, verification)

    def complete_onboarding(self, identity: Identity | None) -> Document:
        """Complete onboarding and persist the ReportSnapshot."""
        return self._completion.complete_onboarding(identity)

    def dashboard(self, admin_email: str | None = None) -> list[MergedView]:
        """Return merged views for every applicant, newest first.

        Args:
            admin_email: Viewing admin; city-restricted admins only see
                their cities. None skips the admin check for local tooling.

        Returns:
            Sorted merged views.
        """
        cities: Iterable[str] | None = None
        if admin_email is not None:
            viewer = require_permission(self._admins.require(admin_email), "view_applications")
            cities = viewer.visible_cities()
        return self._projector.project_all(cities)

    def application(self, email: str) -> MergedView:
        """Return one applicant's merged view.

        Raises:
            NotFoundError: If the applicant is unknown.
        """
        return self._projector.project_one(email)

    def report(self, email: str) -> Document:
        """Return the latest report or an unpersisted preview."""
        return self._projector.preview_report(email)

    def stats(self, admin_email: str | None = None) -> ApplicationStats:
        """Return dashboard counters over visible applicants."""
        return compute_stats(self.dashboard(admin_email))

    def admin(self, email: str) -> AdminUser:
        """Return a registered admin.

        Raises:
            AuthError: If the email belongs to no admin.
        """
        return self._admins.require(email)

    def initialize_super_admin(self, email: str | None = None, name: str | None = None) -> AdminUser:
        """Bootstrap the first super admin.

        Args:
            email: Admin email; defaults to the configured super admin email.
            name: Optional display name.

        Raises:
            OnboardConfigError: If no email is given or configured.
        """
        target = email or self._config.super_admin_email
        if not target:
            raise OnboardConfigError(
                "No super admin email provided. Pass an email or set ONBOARD_SUPER_ADMIN_EMAIL."
            )
        return self._admins.initialize_super_admin(target, name)

    def add_admin(
        self,
        actor_email: str,
        email: str,
        role: AdminRole,
        name: str | None = None,
        accessible_cities: Iterable[str] = (),
    ) -> AdminUser:
        """Create or update an admin on behalf of another admin."""
        actor = self._admins.require(actor_email)
        return self._admins.add_admin(actor, email, role, name, accessible_cities)

    def update_application_status(
        self,
        actor_email: str,
        email: str,
        status: ApplicationStatus,
        notes: str = "",
    ) -> Document:
        """Set an applicant's review status."""
        actor = self._admins.require(actor_email)
        return self._admins.update_application_status(actor, email, status, notes)

    def reset_progress(self, actor_email: str, email: str) -> Document:
        """Reset an applicant's onboarding progress."""
        actor = self._admins.require(actor_email)
        return self._reset.reset_progress(actor, email)

    def backfill_stages(self, dry_run: bool = False) -> BackfillSummary:
        """Write the canonical ``progressStage`` onto every profile."""
        return backfill_progress_stages(self._store, dry_run=dry_run)
