"""Integration tests for the end-to-end onboarding workflow."""

from __future__ import annotations

from dataclasses import replace

from core.config import OnboardConfig
from core.types import ApplicantRecord, Identity
from store.onboarding_sdk import OnboardingClient
from workflow.acknowledgement_ledger import AcknowledgementPolicy
from workflow.progress_stages import Stage


def test_applicant_completes_onboarding_and_appears_on_dashboard(tmp_path) -> None:
    """An applicant walking the whole flow should end with a stored report."""
    client = OnboardingClient(replace(OnboardConfig.from_env(), data_root=tmp_path))
    identity = Identity(email="Jo@Example.com")
    client.record_applicant(
        ApplicantRecord(
            email="Jo@Example.com",
            phone="07700 900001",
            name="Jo",
            city="London",
            raw_payload={"data": {"mot": "Large Van"}},
        )
    )
    client.verify_phone("jo@example.com", "07700900001")
    for stage in (
        Stage.CONFIRM_DETAILS,
        Stage.INTRODUCTION,
        Stage.ABOUT,
        Stage.ROLE,
        Stage.FACILITY_LOCATIONS,
        Stage.BLOCKS_CLASSIFICATION,
        Stage.ROUTES_POLICY,
        Stage.SMOKING_FITNESS_CHECK,
    ):
        client.record_step(identity, stage)
    client.save_availability(identity, {"Mondays": {"morning": True}})
    client.record_step(identity, Stage.AVAILABILITY, {"days": 1})
    for policy in AcknowledgementPolicy:
        client.acknowledge(policy, identity)
    before_completion = client.progress("jo@example.com")

    report = client.complete_onboarding(identity)
    (view,) = client.dashboard()

    assert (
        before_completion.next_stage is Stage.ACKNOWLEDGEMENTS_SUMMARY
        and not before_completion.warnings
        and view.report is not None
        and view.report["id"] == report["reportId"]
        and view.stage_label == "Completed"
        and report["driverInfo"]["vehicleType"] == "van"
    )


def test_reset_returns_completed_applicant_to_welcome(tmp_path) -> None:
    """An admin reset should send a completed applicant back to the start."""
    client = OnboardingClient(replace(OnboardConfig.from_env(), data_root=tmp_path))
    client.record_applicant(ApplicantRecord(email="sam@example.com", phone="123"))
    client.verify_phone("sam@example.com", "123")
    client.complete_onboarding(Identity(email="sam@example.com"))
    client.initialize_super_admin("root@example.com")

    client.reset_progress("root@example.com", "sam@example.com")
    view = client.application("sam@example.com")

    assert view.progress.current_stage is Stage.WELCOME and view.report is not None
