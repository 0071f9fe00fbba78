"""Unit tests for latest-record selection."""

from __future__ import annotations

from store.latest_record import select_latest


def test_select_latest_picks_newest_created_at() -> None:
    """Newest createdAt should win regardless of iteration order."""
    documents = {
        "REPORT_2": {"createdAt": "2024-05-02T00:00:00Z"},
        "REPORT_1": {"createdAt": "2024-05-01T00:00:00Z"},
        "REPORT_3": {"createdAt": "2024-04-30T00:00:00Z"},
    }

    latest = select_latest(documents)

    assert latest is not None and latest[0] == "REPORT_2"


def test_select_latest_breaks_ties_by_document_id() -> None:
    """Equal timestamps should resolve to the greatest document id."""
    pairs = [
        ("REPORT_b", {"createdAt": "2024-05-01T00:00:00Z"}),
        ("REPORT_a", {"createdAt": "2024-05-01T00:00:00Z"}),
    ]

    latest = select_latest(pairs)
    latest_reversed = select_latest(list(reversed(pairs)))

    assert latest is not None and latest_reversed is not None and latest[0] == latest_reversed[0] == "REPORT_b"


def test_select_latest_treats_missing_timestamp_as_epoch() -> None:
    """A document without createdAt should lose to any dated document."""
    documents = {"REPORT_z": {}, "REPORT_a": {"createdAt": "1999-01-01T00:00:00Z"}}

    latest = select_latest(documents)

    assert latest is not None and latest[0] == "REPORT_a"


def test_select_latest_returns_none_for_empty_input() -> None:
    """Empty input should select nothing."""
    assert select_latest({}) is None
