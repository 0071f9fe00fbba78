"""Public SDK surface for onboardkit.

This module provides a stable import path for SDK users.
It re-exports the primary client, typed models and core operations.
"""

from __future__ import annotations

from admin.admin_users import AdminUser
from aggregate.projector import AggregationProjector, MergedView
from core.config import OnboardConfig
from core.types import (
    AcknowledgementResult,
    ApplicantRecord,
    ApplicationStats,
    Identity,
    ResolvedIdentity,
)
from identity.resolver import IdentityResolver, normalize_email
from intake.vehicle_classifier import VehicleCategory, classify_vehicle
from store.onboarding_sdk import OnboardingClient
from workflow.acknowledgement_ledger import AcknowledgementLedger, AcknowledgementPolicy
from workflow.progress_stages import Stage
from workflow.progress_state import ProgressPosition, ProgressWarning, resolve_progress

__all__ = [
    "AcknowledgementLedger",
    "AcknowledgementPolicy",
    "AcknowledgementResult",
    "AdminUser",
    "AggregationProjector",
    "ApplicantRecord",
    "ApplicationStats",
    "Identity",
    "IdentityResolver",
    "MergedView",
    "OnboardConfig",
    "OnboardingClient",
    "ProgressPosition",
    "ProgressWarning",
    "ResolvedIdentity",
    "Stage",
    "VehicleCategory",
    "classify_vehicle",
    "normalize_email",
    "resolve_progress",
]
