"""Applicant intake upserts, email checks and phone verification.

The intake collaborator hands over normalized ApplicantRecords. They are
stored under the canonical key with the vehicle category resolved once
here, so readers never re-derive it from the raw payload.
"""

from __future__ import annotations

import re

from core.constants import APPLICANTS_COLLECTION, DRIVERS_COLLECTION, ONBOARDING_STARTED
from core.errors import OnboardIntakeError
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import (
    ApplicantRecord,
    CanonicalKey,
    Document,
    EmailCheckResult,
    PhoneVerificationResult,
)
from identity.resolver import IdentityResolver, normalize_email
from intake.vehicle_classifier import describe_vehicle
from store.document_store import DocumentStore
from store.record_payload import applicant_record_to_document
from workflow.stage_backfill import refresh_progress_stage

_LOGGER = get_logger(__name__)
_PHONE_NOISE = re.compile(r"[\s\-\(\)\+]")

MESSAGE_NO_APPLICATION = "No application found with this email address"
MESSAGE_VERIFIED = "Applicant verified successfully"
MESSAGE_PHONE_MISMATCH = "Phone number does not match our records"


def normalize_phone(raw_phone: object) -> str:
    """Strip spaces, dashes, parentheses and ``+`` from a phone number."""
    if not isinstance(raw_phone, str):
        return ""
    return _PHONE_NOISE.sub("", raw_phone)


class ApplicantIntake:
    """Applicant-facing intake operations over the document store."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def record_applicant(self, record: ApplicantRecord) -> CanonicalKey:
        """Upsert one intake record under its canonical key.

        Args:
            record: Normalized applicant record.

        Returns:
            Canonical key the record was stored under.

        Raises:
            OnboardIntakeError: If the record has no usable email.
        """
        canonical_key = normalize_email(record.email)
        if not canonical_key:
            raise OnboardIntakeError(
                "Applicant record is missing an email. "
                "Every intake record must carry the applicant's email address."
            )
        now = to_iso(self._clock())
        vehicle = describe_vehicle(record.raw_payload)
        existing = self._store.get(APPLICANTS_COLLECTION, canonical_key)
        document = applicant_record_to_document(record)
        document["email"] = record.email.strip()
        document["vehicleType"] = vehicle.category.value
        document["createdAt"] = (
            (existing or {}).get("createdAt") or record.created_at or now
        )
        document["updatedAt"] = now
        document["webhookReceivedAt"] = now
        document["isActive"] = True
        self._store.set(APPLICANTS_COLLECTION, canonical_key, document)
        _LOGGER.debug(
            "vehicle_classified",
            email=canonical_key,
            path=vehicle.path,
            descriptor=vehicle.descriptor,
            marker=vehicle.marker,
            category=vehicle.category.value,
        )
        _LOGGER.info(
            "applicant_recorded",
            email=canonical_key,
            updated=existing is not None,
            vehicle_type=vehicle.category.value,
        )
        return canonical_key

    def check_email(self, email: str) -> EmailCheckResult:
        """Return basic applicant info for an email, if an application exists.

        Args:
            email: Email entered by the applicant.

        Returns:
            Lookup result; ``exists`` is False when no application is found.
        """
        applicant = self._applicant(email)
        if applicant is None:
            return EmailCheckResult(exists=False)
        return EmailCheckResult(
            exists=True,
            phone=applicant.get("phone") or None,
            name=applicant.get("name") or None,
            applicant_id=applicant.get("applicantId") or None,
            city=applicant.get("city") or None,
            country=applicant.get("country") or None,
            funnel_id=applicant.get("funnelId") or None,
        )

    def verify_phone(self, email: str, phone: str) -> PhoneVerificationResult:
        """Verify an applicant's phone and open their DriverProfile.

        The first successful verification creates the profile. Later
        successful verifications only bump ``updatedAt``.

        Args:
            email: Applicant email.
            phone: Phone number entered by the applicant.

        Returns:
            Verification outcome.

        Raises:
            OnboardIntakeError: If email or phone is missing.
        """
        if not normalize_email(email) or not normalize_phone(phone):
            raise OnboardIntakeError(
                "Email and phone number are required. Provide both to verify an applicant."
            )
        applicant = self._applicant(email)
        if applicant is None:
            return PhoneVerificationResult(is_valid=False, message=MESSAGE_NO_APPLICATION)
        stored_phone = normalize_phone(applicant.get("phone"))
        if not stored_phone or stored_phone != normalize_phone(phone):
            _LOGGER.info("phone_verification_failed", email=normalize_email(email))
            return PhoneVerificationResult(is_valid=False, message=MESSAGE_PHONE_MISMATCH)
        created = self._open_profile(email, applicant)
        return PhoneVerificationResult(
            is_valid=True,
            message=MESSAGE_VERIFIED,
            profile_created=created,
        )

    def _applicant(self, email: str) -> Document | None:
        canonical_key = normalize_email(email)
        if not canonical_key:
            return None
        return self._store.get(APPLICANTS_COLLECTION, canonical_key)

    def _open_profile(self, email: str, applicant: Document) -> bool:
        """Create the DriverProfile, or bump ``updatedAt`` when it exists."""
        canonical_key = normalize_email(email)
        doc_id = self._resolver.write_key(self._store, DRIVERS_COLLECTION, email)
        now = to_iso(self._clock())
        profile: Document = {
            "email": canonical_key,
            "createdAt": now,
            "updatedAt": now,
            "onboardingStatus": ONBOARDING_STARTED,
            "isActive": True,
            "phoneVerified": True,
            "progress_verify": {"confirmed": True, "confirmedAt": now},
        }
        for field_name in ("name", "phone", "city", "country", "vehicleType"):
            if applicant.get(field_name) is not None:
                profile[field_name] = applicant[field_name]
        created = self._store.merge_if(
            DRIVERS_COLLECTION,
            doc_id,
            lambda current: current is None,
            profile,
        )
        if created:
            refresh_progress_stage(self._store, doc_id, profile)
            _LOGGER.info("driver_profile_created", email=canonical_key)
        else:
            self._store.merge(DRIVERS_COLLECTION, doc_id, {"updatedAt": now})
        return created
