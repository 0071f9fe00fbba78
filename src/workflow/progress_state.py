"""Onboarding position inference from the DriverProfile flag bag.

There is no authoritative state column: the resume point is rebuilt by
walking the ordered stages backwards and stopping at the latest stage
whose completion any alias asserts. Inference is pure and never raises,
so dashboards and routing can call it on arbitrary stored documents.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.constants import ONBOARDING_COMPLETED
from workflow.profile_adapter import is_stage_asserted
from workflow.progress_stages import (
    STAGE_ALIASES,
    STAGE_LABELS,
    STAGE_ORDER,
    SUMMARY_PREREQUISITES,
    Stage,
)

_WITHDRAWN_STATUSES = ("rejected", "withdrawn")


@dataclass(frozen=True)
class ProgressWarning:
    """An earlier stage missing while a later one is asserted.

    Attributes:
        missing_stage: Earlier stage with no asserted alias.
        asserted_stage: Latest asserted stage that skipped over it.
    """

    missing_stage: Stage
    asserted_stage: Stage


@dataclass(frozen=True)
class ProgressPosition:
    """Resolved onboarding position.

    Attributes:
        current_stage: Latest stage whose completion is asserted, WELCOME
            when none is, COMPLETED for finished onboarding.
        next_stage: Stage the applicant resumes at. Completed applicants
            restart at WELCOME.
        warnings: Out-of-order completion findings, earliest first.
    """

    current_stage: Stage
    next_stage: Stage
    warnings: tuple[ProgressWarning, ...] = ()

    def to_payload(self) -> dict[str, object]:
        """Serialize position into a JSON-safe payload."""
        return {
            "currentStage": self.current_stage.value,
            "nextStage": self.next_stage.value,
            "warnings": [
                {
                    "missingStage": warning.missing_stage.value,
                    "assertedStage": warning.asserted_stage.value,
                }
                for warning in self.warnings
            ],
        }


def resolve_progress(flags: Mapping[str, Any] | None) -> ProgressPosition:
    """Resolve the current and next stage from a flag bag.

    Args:
        flags: DriverProfile document or any flag mapping; None is treated
            as an empty bag.

    Returns:
        Progress position with out-of-order warnings.
    """
    profile: Mapping[str, Any] = flags if isinstance(flags, Mapping) else {}
    if profile.get("onboardingStatus") == ONBOARDING_COMPLETED:
        return ProgressPosition(current_stage=Stage.COMPLETED, next_stage=Stage.WELCOME)
    for index in range(len(STAGE_ORDER) - 1, -1, -1):
        stage = STAGE_ORDER[index]
        if stage not in STAGE_ALIASES or not _completes(profile, stage):
            continue
        return ProgressPosition(
            current_stage=stage,
            next_stage=STAGE_ORDER[index + 1],
            warnings=_out_of_order_warnings(profile, index),
        )
    return ProgressPosition(current_stage=Stage.WELCOME, next_stage=Stage.WELCOME)


def stage_label(profile: Mapping[str, Any] | None, position: ProgressPosition | None = None) -> str:
    """Return a dashboard display label for an applicant's stage.

    Args:
        profile: DriverProfile document, or None when no profile exists.
        position: Pre-resolved position; resolved from the profile if None.

    Returns:
        Human-readable stage label.
    """
    if not profile:
        return "Not Started"
    resolved = position or resolve_progress(profile)
    if resolved.current_stage is Stage.COMPLETED:
        return STAGE_LABELS[Stage.COMPLETED]
    status = profile.get("status")
    if status in _WITHDRAWN_STATUSES:
        return f"Withdrawn/Rejected ({status})"
    return STAGE_LABELS[resolved.next_stage]


def _completes(profile: Mapping[str, Any], stage: Stage) -> bool:
    if stage is Stage.LIABILITIES:
        return all(is_stage_asserted(profile, required) for required in SUMMARY_PREREQUISITES)
    return is_stage_asserted(profile, stage)


def _out_of_order_warnings(
    profile: Mapping[str, Any],
    asserted_index: int,
) -> tuple[ProgressWarning, ...]:
    asserted_stage = STAGE_ORDER[asserted_index]
    return tuple(
        ProgressWarning(missing_stage=stage, asserted_stage=asserted_stage)
        for stage in STAGE_ORDER[:asserted_index]
        if stage in STAGE_ALIASES and not is_stage_asserted(profile, stage)
    )
