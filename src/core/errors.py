"""Onboarding exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class OnboardError(Exception):
    """Base exception for all onboarding core failures."""


class OnboardConfigError(OnboardError):
    """Raised for invalid runtime configuration."""


class OnboardStoreError(OnboardError):
    """Raised for document store read and write failures."""


class OnboardIntakeError(OnboardError):
    """Raised for invalid intake records or intake batch files."""


class OnboardValidationError(OnboardError):
    """Raised when applicant-submitted step data fails validation."""


class AuthError(OnboardError):
    """Raised when an operation requires a resolvable identity and has none."""


class PermissionDeniedError(AuthError):
    """Raised when an admin identity lacks the permission an operation needs."""


class NotFoundError(OnboardError):
    """Raised when a required primary record is absent."""


class IdentityResolutionFailure(OnboardError):
    """Raised when no candidate key matches in any store.

    Aggregation treats this as "no data here" for the applicant and never
    lets it abort a batch.
    """


class AggregationPartialFailure(OnboardError):
    """Raised when one auxiliary lookup fails during aggregation."""


class LedgerWriteFailure(OnboardError):
    """Raised when an acknowledgement write cannot be persisted."""


class OnboardDependencyError(OnboardError):
    """Raised when an optional runtime dependency is unavailable."""
