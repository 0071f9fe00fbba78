"""Unit tests for report snapshot assembly."""

from __future__ import annotations

from datetime import datetime, timezone

from aggregate.report_builder import build_report_id, build_report_snapshot, order_availability


def test_build_report_id_replaces_email_punctuation() -> None:
    """Report ids should embed epoch millis and an underscored email."""
    moment = datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)

    assert build_report_id("jo.d@example.com", moment) == "REPORT_1000_jo_d_example_com"


def test_order_availability_returns_none_for_missing_map() -> None:
    """No availability map should render as None."""
    assert order_availability(None) is None


def test_snapshot_reads_legacy_role_flag() -> None:
    """The legacy roleUnderstood flag should count as role acknowledgement."""
    snapshot = build_report_snapshot(
        "jo@example.com",
        profile={"roleUnderstood": True, "roleUnderstoodAt": "2024-01-01T00:00:00Z"},
        applicant=None,
        availability=None,
        verification=None,
        moment=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )

    assert (snapshot["acknowledgements"]["role"], snapshot["acknowledgements"]["roleDate"]) == (
        True,
        "2024-01-01T00:00:00Z",
    )
