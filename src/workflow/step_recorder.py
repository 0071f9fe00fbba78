"""Onboarding step writes made as the applicant moves through the flow."""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import (
    AVAILABILITY_COLLECTION,
    AVAILABILITY_SLOTS,
    DRIVERS_COLLECTION,
    VERIFICATION_COLLECTION,
)
from core.errors import IdentityResolutionFailure, NotFoundError, OnboardValidationError
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import Document, Identity
from identity.resolver import IdentityResolver, authenticated_email, normalize_email
from store.document_store import DocumentStore
from workflow.progress_stages import STAGE_ALIASES, Stage, progress_field
from workflow.stage_backfill import refresh_progress_stage

_LOGGER = get_logger(__name__)


class StepRecorder:
    """Records step progress, availability and vehicle verification."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def record_step(
        self,
        identity: Identity | None,
        step: Stage | str,
        data: Mapping[str, Any] | None = None,
    ) -> Document:
        """Mark one step confirmed on the DriverProfile.

        Args:
            identity: Authenticated caller identity.
            step: Stage, or a raw step name such as ``personal_details``.
            data: Step payload stored inside the progress map.

        Returns:
            Merged DriverProfile.

        Raises:
            AuthError: If the identity is missing.
            NotFoundError: If no DriverProfile exists yet.
        """
        email = authenticated_email(identity)
        canonical_key = normalize_email(email)
        doc_id = self._profile_key(email)
        now = to_iso(self._clock())
        field_name = progress_field(step) if isinstance(step, Stage) else f"progress_{step}"
        progress = {**dict(data or {}), "confirmed": True, "confirmedAt": now}
        fields: Document = {field_name: progress, "updatedAt": now}
        if isinstance(step, Stage):
            # Flat aliases count too, so stages without a nested alias still assert.
            for alias in STAGE_ALIASES.get(step, ()):
                if "." not in alias:
                    fields[alias] = True
        merged = refresh_progress_stage(
            self._store, doc_id, self._store.merge(DRIVERS_COLLECTION, doc_id, fields)
        )
        _LOGGER.info("step_recorded", email=canonical_key, field=field_name)
        return merged

    def save_availability(
        self,
        identity: Identity | None,
        availability: Mapping[str, Any],
    ) -> Document:
        """Replace the applicant's AvailabilityRecord.

        The record is keyed like the DriverProfile so merged views find it.

        Args:
            identity: Authenticated caller identity.
            availability: Day name to ``{morning, noon, evening}`` slot map.

        Returns:
            Stored AvailabilityRecord.

        Raises:
            AuthError: If the identity is missing.
            OnboardValidationError: If no day has any slot selected.
        """
        email = authenticated_email(identity)
        canonical_key = normalize_email(email)
        if not isinstance(availability, Mapping) or not _has_any_slot(availability):
            raise OnboardValidationError(
                "Availability has no selected time slot. "
                "Please select at least one time slot."
            )
        now = to_iso(self._clock())
        doc_id = self._resolver.pin(self._store, email).lookup_key
        document: Document = {
            "email": canonical_key,
            "availability": dict(availability),
            "createdAt": now,
            "updatedAt": now,
        }
        self._store.set(AVAILABILITY_COLLECTION, doc_id, document)
        _LOGGER.info("availability_saved", email=canonical_key)
        return document

    def save_verification(
        self,
        identity: Identity | None,
        verification: Mapping[str, Any],
    ) -> Document:
        """Merge vehicle verification details into the VerificationRecord.

        Returns:
            Merged VerificationRecord.
        """
        email = authenticated_email(identity)
        canonical_key = normalize_email(email)
        now = to_iso(self._clock())
        doc_id = self._resolver.pin(self._store, email).lookup_key
        existing = self._store.get(VERIFICATION_COLLECTION, doc_id) or {}
        fields: Document = {
            "email": canonical_key,
            **dict(verification),
            "createdAt": existing.get("createdAt") or now,
            "updatedAt": now,
        }
        merged = self._store.merge(VERIFICATION_COLLECTION, doc_id, fields)
        _LOGGER.info("verification_saved", email=canonical_key)
        return merged

    def _profile_key(self, email: str) -> str:
        try:
            return self._resolver.document_key(self._store, DRIVERS_COLLECTION, email)
        except IdentityResolutionFailure as error:
            raise NotFoundError(
                f"No driver profile exists for {normalize_email(email)}. "
                "Complete phone verification before recording steps."
            ) from error


def _has_any_slot(availability: Mapping[str, Any]) -> bool:
    for day in availability.values():
        if isinstance(day, Mapping) and any(day.get(slot) for slot in AVAILABILITY_SLOTS):
            return True
    return False
