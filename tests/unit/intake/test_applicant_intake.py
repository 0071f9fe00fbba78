"""Unit tests for applicant intake, email checks and phone verification."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from core.config import OnboardConfig
from core.errors import OnboardIntakeError
from core.types import ApplicantRecord
from intake.applicant_intake import ApplicantIntake, MESSAGE_PHONE_MISMATCH, normalize_phone
from store.document_store import DocumentStore


def _intake(tmp_path) -> tuple[ApplicantIntake, DocumentStore]:
    store = DocumentStore(replace(OnboardConfig.from_env(), data_root=tmp_path))
    clock = lambda: datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)  # noqa: E731
    return ApplicantIntake(store, clock=clock), store


def _record(**overrides) -> ApplicantRecord:
    values = {
        "email": "Jo@Example.com",
        "phone": "+44 (7700) 900-001",
        "name": "Jo",
        "city": "London",
        "raw_payload": {"data": {"mot": "Large Van"}},
    }
    values.update(overrides)
    return ApplicantRecord(**values)


def test_normalize_phone_strips_punctuation() -> None:
    """Spaces, dashes, parentheses and plus signs should be removed."""
    assert normalize_phone("+44 (7700) 900-001") == "447700900001"


def test_record_applicant_stores_under_normalized_key(tmp_path) -> None:
    """Intake records should be keyed by the normalized email."""
    intake, store = _intake(tmp_path)

    key = intake.record_applicant(_record())

    assert key == "jo@example.com" and store.exists("fountain_applicants", "jo@example.com")


def test_record_applicant_resolves_vehicle_type(tmp_path) -> None:
    """The vehicle category should be stored on the applicant document."""
    intake, store = _intake(tmp_path)
    intake.record_applicant(_record())

    document = store.get("fountain_applicants", "jo@example.com") or {}

    assert document["vehicleType"] == "van"


def test_record_applicant_preserves_created_at_on_update(tmp_path) -> None:
    """Re-delivered records should keep the first createdAt."""
    intake, store = _intake(tmp_path)
    store.set("fountain_applicants", "jo@example.com", {"createdAt": "2023-01-01T00:00:00Z"})

    intake.record_applicant(_record(name="Jo Updated"))
    document = store.get("fountain_applicants", "jo@example.com") or {}

    assert (document["createdAt"], document["name"]) == ("2023-01-01T00:00:00Z", "Jo Updated")


def test_check_email_is_case_insensitive(tmp_path) -> None:
    """Email checks should find applicants by any casing."""
    intake, _ = _intake(tmp_path)
    intake.record_applicant(_record())

    result = intake.check_email("JO@EXAMPLE.COM")

    assert result.exists and result.city == "London"


def test_verify_phone_creates_profile_once(tmp_path) -> None:
    """The first successful verification should create the driver profile."""
    intake, store = _intake(tmp_path)
    intake.record_applicant(_record())

    first = intake.verify_phone("jo@example.com", "447700900001")
    second = intake.verify_phone("jo@example.com", "+44 7700 900001")
    profile = store.get("drivers", "jo@example.com") or {}

    assert (
        first.profile_created
        and second.is_valid
        and not second.profile_created
        and profile["phoneVerified"] is True
        and profile["vehicleType"] == "van"
    )


def test_verify_phone_rejects_mismatch(tmp_path) -> None:
    """A different phone should fail verification without creating a profile."""
    intake, store = _intake(tmp_path)
    intake.record_applicant(_record())

    result = intake.verify_phone("jo@example.com", "07000000000")

    assert result.message == MESSAGE_PHONE_MISMATCH and not store.exists("drivers", "jo@example.com")


def test_verify_phone_requires_both_inputs(tmp_path) -> None:
    """Missing email or phone should raise an intake error."""
    intake, _ = _intake(tmp_path)

    with pytest.raises(OnboardIntakeError):
        intake.verify_phone("jo@example.com", "")

    assert True


def test_verify_phone_reuses_legacy_cased_profile(tmp_path) -> None:
    """Verification should not fork a profile stored under the original casing."""
    intake, store = _intake(tmp_path)
    intake.record_applicant(_record())
    store.set("drivers", "Jo@Example.com", {"phoneVerified": True})

    result = intake.verify_phone("jo@example.com", "447700900001")

    assert not result.profile_created and set(store.list_documents("drivers")) == {"Jo@Example.com"}


def test_verify_phone_sets_progress_stage(tmp_path) -> None:
    """A new profile should carry the verify stage."""
    intake, store = _intake(tmp_path)
    intake.record_applicant(_record())

    intake.verify_phone("jo@example.com", "447700900001")

    assert (store.get("drivers", "jo@example.com") or {})["progressStage"] == "verify"
