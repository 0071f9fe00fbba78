"""Dashboard counters over merged applicant views."""

from __future__ import annotations

from typing import Iterable

from aggregate.projector import MergedView
from core.constants import ONBOARDING_COMPLETED, ONBOARDING_STARTED
from core.types import ApplicationStats


def compute_stats(views: Iterable[MergedView]) -> ApplicationStats:
    """Count applications by review status and onboarding status.

    Applications without a review status count as pending.

    Args:
        views: Merged applicant views.

    Returns:
        Aggregated counters.
    """
    rows = list(views)
    statuses = [view.fields.get("status") or "pending" for view in rows]
    onboarding = [view.fields.get("onboardingStatus") for view in rows]
    return ApplicationStats(
        total=len(rows),
        pending=statuses.count("pending"),
        on_hold=statuses.count("on_hold"),
        approved=statuses.count("approved"),
        hired=statuses.count("hired"),
        rejected=statuses.count("rejected"),
        withdrawn=statuses.count("withdrawn"),
        completed=onboarding.count(ONBOARDING_COMPLETED),
        in_progress=onboarding.count(ONBOARDING_STARTED),
    )
