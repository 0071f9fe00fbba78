"""Onboarding stage enumeration and the alias table behind it.

Each stage's completion may be recorded under several field names that
accumulated over time. Dotted aliases such as
``progress_fee_structure.confirmed`` address a nested progress map.
"""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    """Ordered onboarding stages."""

    WELCOME = "welcome"
    VERIFY = "verify"
    CONFIRM_DETAILS = "confirm_details"
    INTRODUCTION = "introduction"
    ABOUT = "about"
    ROLE = "role"
    AVAILABILITY = "availability"
    FACILITY_LOCATIONS = "facility_locations"
    BLOCKS_CLASSIFICATION = "blocks_classification"
    FEE_STRUCTURE = "fee_structure"
    PAYMENT_CYCLE_SCHEDULE = "payment_cycle_schedule"
    ROUTES_POLICY = "routes_policy"
    CANCELLATION_POLICY = "cancellation_policy"
    SMOKING_FITNESS_CHECK = "smoking_fitness_check"
    LIABILITIES = "liabilities"
    ACKNOWLEDGEMENTS_SUMMARY = "acknowledgements_summary"
    COMPLETED = "completed"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)

STAGE_ALIASES: dict[Stage, tuple[str, ...]] = {
    Stage.VERIFY: ("phoneVerified", "progress_verify.confirmed"),
    Stage.CONFIRM_DETAILS: ("detailsConfirmed", "progress_confirm_details.confirmed"),
    Stage.INTRODUCTION: ("introductionAcknowledged", "progress_introduction.confirmed"),
    Stage.ABOUT: ("aboutAcknowledged", "progress_about.confirmed"),
    Stage.ROLE: ("roleAcknowledged", "progress_role.confirmed"),
    Stage.AVAILABILITY: ("progress_availability.confirmed",),
    Stage.FACILITY_LOCATIONS: (
        "facilityLocationsAcknowledged",
        "progress_facility_locations.confirmed",
    ),
    Stage.BLOCKS_CLASSIFICATION: ("blocksClassificationAcknowledged",),
    Stage.FEE_STRUCTURE: (
        "acknowledgedFeeStructure",
        "feeStructureAcknowledged",
        "progress_fee_structure.confirmed",
    ),
    Stage.PAYMENT_CYCLE_SCHEDULE: (
        "acknowledgedPaymentCycleSchedule",
        "paymentCycleScheduleAcknowledged",
    ),
    Stage.ROUTES_POLICY: ("routesPolicyAcknowledged", "progress_routes_policy.confirmed"),
    Stage.CANCELLATION_POLICY: (
        "acknowledgedCancellationPolicy",
        "cancellationPolicyAcknowledged",
        "progress_cancellation_policy.confirmed",
    ),
    Stage.SMOKING_FITNESS_CHECK: ("progress_smoking_fitness_check.confirmed",),
    Stage.LIABILITIES: ("acknowledgedLiabilities", "progress_liabilities.confirmed"),
}

# Completion of LIABILITIES only advances to the summary when all of these hold.
SUMMARY_PREREQUISITES: tuple[Stage, ...] = (
    Stage.LIABILITIES,
    Stage.BLOCKS_CLASSIFICATION,
    Stage.FEE_STRUCTURE,
    Stage.ROUTES_POLICY,
    Stage.CANCELLATION_POLICY,
    Stage.SMOKING_FITNESS_CHECK,
)

STAGE_LABELS: dict[Stage, str] = {
    Stage.WELCOME: "Welcome",
    Stage.VERIFY: "Verify",
    Stage.CONFIRM_DETAILS: "Confirm Details",
    Stage.INTRODUCTION: "Introduction",
    Stage.ABOUT: "About",
    Stage.ROLE: "Role",
    Stage.AVAILABILITY: "Availability",
    Stage.FACILITY_LOCATIONS: "Facility Locations",
    Stage.BLOCKS_CLASSIFICATION: "Blocks Classification",
    Stage.FEE_STRUCTURE: "Fee Structure",
    Stage.PAYMENT_CYCLE_SCHEDULE: "Payment Cycle Schedule",
    Stage.ROUTES_POLICY: "How Route Works",
    Stage.CANCELLATION_POLICY: "Cancellation Policy",
    Stage.SMOKING_FITNESS_CHECK: "Smoking & Fitness Check",
    Stage.LIABILITIES: "Liabilities",
    Stage.ACKNOWLEDGEMENTS_SUMMARY: "Acknowledgements Summary",
    Stage.COMPLETED: "Completed",
}

# Progress maps written by earlier releases under names no stage alias uses.
LEGACY_PROGRESS_FIELDS: tuple[str, ...] = (
    "progress_fleet_agent",
    "progress_verification",
    "progress_blocks_classification",
    "progress_how_route_works",
    "progress_smoking_fitness",
    "progress_acknowledgements",
)

# Flags and timestamps outside the stage alias table that resets must clear.
LEGACY_FLAG_FIELDS: tuple[str, ...] = (
    "roleUnderstood",
    "detailsConfirmedAt",
    "phoneVerifiedAt",
    "roleUnderstoodAt",
    "roleAcknowledgedAt",
    "aboutAcknowledgedAt",
    "introductionAcknowledgedAt",
    "facilityLocationsAcknowledgedAt",
    "blocksClassificationAcknowledgedAt",
    "feeStructureAcknowledgedAt",
    "paymentCycleScheduleAcknowledgedAt",
    "routesPolicyAcknowledgedAt",
    "cancellationPolicyAcknowledgedAt",
    "liabilitiesAcknowledgedAt",
    "smokingFitnessCompleted",
)


def progress_field(stage: Stage) -> str:
    """Return the nested progress map field for a stage."""
    return f"progress_{stage.value}"


def alias_field_names() -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split every stage alias into flat flag names and progress map names.

    Returns:
        ``(flat_flags, progress_maps)``, each de-duplicated in table order.
    """
    flat_flags: list[str] = []
    progress_maps: list[str] = []
    for aliases in STAGE_ALIASES.values():
        for alias in aliases:
            head, _, nested = alias.partition(".")
            target = progress_maps if nested else flat_flags
            if head not in target:
                target.append(head)
    return tuple(flat_flags), tuple(progress_maps)
