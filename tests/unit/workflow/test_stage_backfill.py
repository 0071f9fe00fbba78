"""Unit tests for the canonical progress stage backfill."""

from __future__ import annotations

from dataclasses import replace

from core.config import OnboardConfig
from store.document_store import DocumentStore
from workflow.stage_backfill import backfill_progress_stages


def _store(tmp_path) -> DocumentStore:
    store = DocumentStore(replace(OnboardConfig.from_env(), data_root=tmp_path))
    store.set("drivers", "a@example.com", {"phoneVerified": True})
    store.set("drivers", "b@example.com", {"phoneVerified": True, "aboutAcknowledged": True})
    return store


def test_backfill_writes_inferred_stage(tmp_path) -> None:
    """Each profile should receive its inferred current stage."""
    store = _store(tmp_path)

    summary = backfill_progress_stages(store)
    profile = store.get("drivers", "b@example.com") or {}

    assert (summary.updated, summary.warnings, profile["progressStage"]) == (2, 1, "about")


def test_backfill_rerun_writes_nothing(tmp_path) -> None:
    """A second run should find every profile up to date."""
    store = _store(tmp_path)
    backfill_progress_stages(store)

    summary = backfill_progress_stages(store)

    assert (summary.scanned, summary.updated) == (2, 0)


def test_backfill_dry_run_leaves_profiles_untouched(tmp_path) -> None:
    """Dry runs should count without writing."""
    store = _store(tmp_path)

    summary = backfill_progress_stages(store, dry_run=True)

    assert summary.updated == 2 and "progressStage" not in (store.get("drivers", "a@example.com") or {})
