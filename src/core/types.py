"""Shared typed models.

This module defines immutable data models used by intake, identity,
workflow and aggregation layers to keep interfaces explicit and stable.
Documents read from the store stay plain mappings; the models here are
the contracts that cross module boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

CanonicalKey = str
Document = dict[str, Any]


@dataclass(frozen=True)
class ApplicantRecord:
    """Normalized intake record handed over by the intake collaborator.

    Attributes:
        email: Applicant email as received; normalized on write.
        phone: Contact phone number.
        name: Display name.
        applicant_id: Intake system applicant identifier.
        funnel_id: Intake funnel identifier.
        stage: Intake stage name.
        status: Intake status.
        city: Applicant city.
        country: Applicant country code.
        raw_payload: Opaque nested payload, read only by the vehicle
            classifier and report enrichment.
        created_at: Optional ISO creation timestamp.
        updated_at: Optional ISO update timestamp.
    """

    email: str
    phone: str | None = None
    name: str | None = None
    applicant_id: str | None = None
    funnel_id: str | None = None
    stage: str | None = None
    status: str | None = None
    city: str | None = None
    country: str | None = None
    raw_payload: Mapping[str, Any] = field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Authenticated caller identity.

    Attributes:
        email: Email carried by the authenticated session, if any.
    """

    email: str | None


@dataclass(frozen=True)
class ResolvedIdentity:
    """Outcome of one identity resolution pass.

    Attributes:
        canonical_key: Normalized email used to pin output ids.
        lookup_key: Key casing that every sub-lookup in the pass must use.
        matched_store: Collection where the lookup key first matched.
    """

    canonical_key: CanonicalKey
    lookup_key: str
    matched_store: str | None

    @property
    def matched(self) -> bool:
        """Return whether any store held a record under a candidate key."""
        return self.matched_store is not None


@dataclass(frozen=True)
class AcknowledgementResult:
    """Ledger operation outcome."""

    success: bool
    already_acknowledged: bool


@dataclass(frozen=True)
class EmailCheckResult:
    """Basic applicant info returned before sign-in."""

    exists: bool
    phone: str | None = None
    name: str | None = None
    applicant_id: str | None = None
    city: str | None = None
    country: str | None = None
    funnel_id: str | None = None


@dataclass(frozen=True)
class PhoneVerificationResult:
    """Phone verification outcome.

    Attributes:
        is_valid: Whether the phone matched the stored applicant phone.
        message: Human-readable outcome.
        profile_created: Whether this call created the driver profile.
    """

    is_valid: bool
    message: str
    profile_created: bool = False


@dataclass(frozen=True)
class ApplicationStats:
    """Dashboard counters over merged applicant views."""

    total: int
    pending: int
    on_hold: int
    approved: int
    hired: int
    rejected: int
    withdrawn: int
    completed: int
    in_progress: int
