"""Canonical ``progressStage`` maintenance.

Each DriverProfile carries the stage inferred from its legacy aliases, so
readers can move to a single tagged field while the aliases stay
readable for older tooling. Every profile write refreshes the field; the
backfill covers profiles written before that.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from core.constants import DRIVERS_COLLECTION
from core.logging_config import get_logger
from core.types import Document
from store.document_store import DocumentStore
from workflow.progress_state import resolve_progress

_LOGGER = get_logger(__name__)

PROGRESS_STAGE_FIELD = "progressStage"


@dataclass(frozen=True)
class BackfillSummary:
    """Backfill outcome counters."""

    scanned: int
    updated: int
    warnings: int


def refresh_progress_stage(
    store: DocumentStore,
    doc_id: str,
    profile: Mapping[str, object],
) -> Document:
    """Bring ``progressStage`` in line with the profile's resolved position.

    Args:
        store: Document store.
        doc_id: DriverProfile document id.
        profile: Profile as just written.

    Returns:
        The profile carrying the current stage.
    """
    stage_value = resolve_progress(profile).current_stage.value
    if profile.get(PROGRESS_STAGE_FIELD) == stage_value:
        return dict(profile)
    return store.merge(DRIVERS_COLLECTION, doc_id, {PROGRESS_STAGE_FIELD: stage_value})


def backfill_progress_stages(store: DocumentStore, dry_run: bool = False) -> BackfillSummary:
    """Write the inferred stage onto every DriverProfile.

    Profiles already holding the inferred value are skipped, so reruns
    write nothing.

    Args:
        store: Document store.
        dry_run: Count changes without writing.

    Returns:
        Backfill summary.
    """
    updated = 0
    warnings = 0
    profiles = store.list_documents(DRIVERS_COLLECTION)
    for doc_id, profile in profiles.items():
        position = resolve_progress(profile)
        if position.warnings:
            warnings += 1
            _LOGGER.warning(
                "progress_out_of_order",
                doc_id=doc_id,
                asserted_stage=position.current_stage.value,
                missing_stages=[warning.missing_stage.value for warning in position.warnings],
            )
        if profile.get(PROGRESS_STAGE_FIELD) == position.current_stage.value:
            continue
        updated += 1
        if not dry_run:
            refresh_progress_stage(store, doc_id, profile)
    _LOGGER.info(
        "progress_stage_backfill_completed",
        scanned=len(profiles),
        updated=updated,
        dry_run=dry_run,
    )
    return BackfillSummary(scanned=len(profiles), updated=updated, warnings=warnings)
