"""Unit tests for onboarding step, availability and verification writes."""

from __future__ import annotations

from dataclasses import replace

import pytest

from aggregate.projector import AggregationProjector
from core.config import OnboardConfig
from core.errors import NotFoundError, OnboardValidationError
from core.types import Identity
from store.document_store import DocumentStore
from workflow.progress_stages import Stage
from workflow.progress_state import resolve_progress
from workflow.step_recorder import StepRecorder

_IDENTITY = Identity(email="jo@example.com")


def _recorder(tmp_path) -> tuple[StepRecorder, DocumentStore]:
    store = DocumentStore(replace(OnboardConfig.from_env(), data_root=tmp_path))
    return StepRecorder(store), store


def test_record_step_requires_profile(tmp_path) -> None:
    """Steps cannot be recorded before the profile exists."""
    recorder, _ = _recorder(tmp_path)

    with pytest.raises(NotFoundError):
        recorder.record_step(_IDENTITY, Stage.ROLE)

    assert True


def test_record_step_advances_progress(tmp_path) -> None:
    """A recorded step should be visible to progress inference."""
    recorder, store = _recorder(tmp_path)
    store.set("drivers", "jo@example.com", {"phoneVerified": True})

    recorder.record_step(_IDENTITY, Stage.CONFIRM_DETAILS, {"name": "Jo"})
    position = resolve_progress(store.get("drivers", "jo@example.com"))

    assert position.next_stage is Stage.INTRODUCTION


def test_save_availability_requires_a_slot(tmp_path) -> None:
    """Availability without any slot selected should be rejected."""
    recorder, _ = _recorder(tmp_path)

    with pytest.raises(OnboardValidationError):
        recorder.save_availability(_IDENTITY, {"Mondays": {"morning": False}})

    assert True


def test_save_availability_replaces_previous_record(tmp_path) -> None:
    """Saving availability should overwrite earlier days."""
    recorder, store = _recorder(tmp_path)
    recorder.save_availability(_IDENTITY, {"Mondays": {"morning": True}})

    recorder.save_availability(_IDENTITY, {"Fridays": {"evening": True}})
    record = store.get("availability", "jo@example.com") or {}

    assert record["availability"] == {"Fridays": {"evening": True}}


def test_save_verification_keeps_created_at(tmp_path) -> None:
    """Verification merges should preserve the first createdAt."""
    recorder, store = _recorder(tmp_path)
    store.set("verification", "jo@example.com", {"createdAt": "2024-01-01T00:00:00Z"})

    merged = recorder.save_verification(_IDENTITY, {"vehicleDetails": {"make": "Ford"}})

    assert merged["createdAt"] == "2024-01-01T00:00:00Z"


def test_record_step_sets_flat_alias(tmp_path) -> None:
    """Stages asserted only by flat aliases should still advance."""
    recorder, store = _recorder(tmp_path)
    store.set("drivers", "jo@example.com", {"phoneVerified": True})

    profile = recorder.record_step(_IDENTITY, Stage.BLOCKS_CLASSIFICATION)

    assert profile["blocksClassificationAcknowledged"] is True


def test_record_step_updates_legacy_cased_profile(tmp_path) -> None:
    """Steps should land on a profile stored under the original casing."""
    recorder, store = _recorder(tmp_path)
    store.set("drivers", "Jo@Example.com", {"phoneVerified": True})

    recorder.record_step(Identity(email="jo@example.com"), Stage.CONFIRM_DETAILS)

    assert set(store.list_documents("drivers")) == {"Jo@Example.com"}


def test_record_step_tracks_progress_stage(tmp_path) -> None:
    """The canonical stage field should match the resolved position."""
    recorder, store = _recorder(tmp_path)
    store.set("drivers", "jo@example.com", {"phoneVerified": True})

    profile = recorder.record_step(_IDENTITY, Stage.CONFIRM_DETAILS)

    assert profile["progressStage"] == resolve_progress(profile).current_stage.value == "confirm_details"


def test_saved_availability_joins_legacy_cased_profile(tmp_path) -> None:
    """Availability saved for a legacy-cased applicant should show in the merged view."""
    recorder, store = _recorder(tmp_path)
    store.set("fountain_applicants", "jo@example.com", {"email": "jo@example.com"})
    store.set("drivers", "Jo@Example.com", {"phoneVerified": True})

    recorder.save_availability(_IDENTITY, {"Mondays": {"morning": True}})
    recorder.save_verification(_IDENTITY, {"licensePlate": "AB12 CDE"})
    (view,) = AggregationProjector(store).project_all()

    assert (
        view.lookup_key == "Jo@Example.com"
        and view.availability is not None
        and view.verification is not None
    )
