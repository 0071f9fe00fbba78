"""ReportSnapshot assembly from one applicant's joined records.

Snapshots are built the same way for persisted completion reports and
for unpersisted admin previews, so both always share one shape.
"""

from __future__ import annotations

from datetime import datetime
import re
from typing import Any, Mapping

from core.constants import AVAILABILITY_DAY_ORDER, REPORT_ID_PREFIX
from core.timestamps import to_iso
from core.types import CanonicalKey, Document
from workflow.profile_adapter import first_present, is_stage_asserted, read_alias
from workflow.progress_stages import Stage

_EMAIL_PUNCTUATION = re.compile(r"[@.]")

# report key -> (stage or flag aliases, timestamp aliases)
_ACKNOWLEDGEMENT_SOURCES: dict[str, tuple[Stage | tuple[str, ...], tuple[str, ...]]] = {
    "role": (
        ("roleUnderstood", "roleAcknowledged", "progress_role.confirmed"),
        ("roleUnderstoodAt", "roleAcknowledgedAt", "progress_role.confirmedAt"),
    ),
    "blockClassification": (
        Stage.BLOCKS_CLASSIFICATION,
        ("blocksClassificationAcknowledgedAt",),
    ),
    "feeStructure": (
        Stage.FEE_STRUCTURE,
        ("feeStructureAcknowledgedAt", "progress_fee_structure.confirmedAt"),
    ),
    "paymentCycleSchedule": (
        Stage.PAYMENT_CYCLE_SCHEDULE,
        ("paymentCycleScheduleAcknowledgedAt",),
    ),
    "routesPolicy": (
        Stage.ROUTES_POLICY,
        ("routesPolicyAcknowledgedAt", "progress_routes_policy.confirmedAt"),
    ),
    "cancellationPolicy": (
        Stage.CANCELLATION_POLICY,
        ("cancellationPolicyAcknowledgedAt", "progress_cancellation_policy.confirmedAt"),
    ),
    "liabilities": (
        Stage.LIABILITIES,
        ("liabilitiesAcknowledgedAt", "progress_liabilities.confirmedAt"),
    ),
}


def build_report_id(canonical_key: CanonicalKey, moment: datetime) -> str:
    """Return ``REPORT_<epoch millis>_<email with @ and . as _>``."""
    millis = int(moment.timestamp() * 1000)
    return f"{REPORT_ID_PREFIX}_{millis}_{_EMAIL_PUNCTUATION.sub('_', canonical_key)}"


def order_availability(availability: object) -> dict[str, Any] | None:
    """Order availability days Monday to Sunday, appending unknown keys.

    Args:
        availability: Stored availability map, or None.

    Returns:
        Reordered copy, or None when there is no availability map.
    """
    if not isinstance(availability, Mapping):
        return None
    ordered = {day: availability[day] for day in AVAILABILITY_DAY_ORDER if day in availability}
    for day, slots in availability.items():
        if day not in ordered:
            ordered[day] = slots
    return ordered


def build_report_snapshot(
    canonical_key: CanonicalKey,
    profile: Mapping[str, Any] | None,
    applicant: Mapping[str, Any] | None,
    availability: Mapping[str, Any] | None,
    verification: Mapping[str, Any] | None,
    moment: datetime,
) -> Document:
    """Assemble one ReportSnapshot document.

    Args:
        canonical_key: Normalized applicant email.
        profile: DriverProfile, or None.
        applicant: ApplicantRecord document, or None.
        availability: AvailabilityRecord, or None.
        verification: VerificationRecord, or None.
        moment: Generation time.

    Returns:
        Snapshot document ready to persist or return as a preview.
    """
    driver = dict(profile or {})
    contact: dict[str, Any] = {**dict(applicant or {}), **driver}
    generated = to_iso(moment)
    personal_info = {
        "name": contact.get("name"),
        "email": canonical_key,
        "phone": contact.get("phone"),
        "city": contact.get("city"),
    }
    return {
        "reportId": build_report_id(canonical_key, moment),
        "email": canonical_key,
        "driverEmail": canonical_key,
        "generatedAt": generated,
        "generatedDate": generated,
        "createdAt": generated,
        "personalInfo": personal_info,
        "driverInfo": {
            **personal_info,
            "vehicleType": contact.get("vehicleType"),
            "country": contact.get("country"),
        },
        "verificationDetails": _verification_details(verification),
        "verification": dict(verification) if verification is not None else None,
        "availability": order_availability((availability or {}).get("availability")),
        "acknowledgements": _acknowledgements(driver),
        "healthAndSafety": {
            "smokingStatus": driver.get("smokingStatus"),
            "hasPhysicalDifficulties": driver.get("hasPhysicalDifficulties"),
            "smokingFitnessCompleted": is_stage_asserted(driver, Stage.SMOKING_FITNESS_CHECK),
        },
        "facilityPreferences": {
            "selectedFacilities": list(driver.get("selectedFacilities") or []),
            "acknowledged": is_stage_asserted(driver, Stage.FACILITY_LOCATIONS),
            "acknowledgedAt": first_present(
                driver,
                "facilityLocationsAcknowledgedAt",
                "progress_facility_locations.confirmedAt",
            ),
        },
        "onboardingStatus": {
            "status": driver.get("onboardingStatus"),
            "completedAt": driver.get("completedAt"),
            "startedAt": driver.get("createdAt"),
        },
        "progress": {
            "personalDetails": driver.get("progress_personal_details"),
            "availability": driver.get("progress_availability"),
            "verification": driver.get("progress_verification"),
        },
    }


def _verification_details(verification: Mapping[str, Any] | None) -> Document | None:
    if verification is None:
        return None
    return {
        "vehicle": verification.get("vehicle"),
        "licensePlate": verification.get("licensePlate"),
        "address": verification.get("address"),
        "city": verification.get("city"),
        "verifiedAt": verification.get("updatedAt"),
    }


def _acknowledgements(driver: Mapping[str, Any]) -> Document:
    acknowledgements: Document = {}
    for report_key, (source, date_aliases) in _ACKNOWLEDGEMENT_SOURCES.items():
        if isinstance(source, Stage):
            asserted = is_stage_asserted(driver, source)
        else:
            asserted = any(read_alias(driver, alias) is True for alias in source)
        acknowledgements[report_key] = asserted
        acknowledgements[f"{report_key}Date"] = first_present(driver, *date_aliases)
    return acknowledgements
