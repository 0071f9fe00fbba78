"""Core constants used across onboarding modules.

This module centralizes collection names and shared literals.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".onboard")
COLLECTIONS_DIR_NAME = "collections"
COLLECTION_FILE_SUFFIX = ".json"

APPLICANTS_COLLECTION = "fountain_applicants"
DRIVERS_COLLECTION = "drivers"
AVAILABILITY_COLLECTION = "availability"
VERIFICATION_COLLECTION = "verification"
REPORTS_COLLECTION = "reports"
ADMINS_COLLECTION = "admins"

ONBOARDING_STARTED = "started"
ONBOARDING_COMPLETED = "completed"
REPORT_ID_PREFIX = "REPORT"

AVAILABILITY_DAY_ORDER = (
    "Mondays",
    "Tuesdays",
    "Wednesdays",
    "Thursdays",
    "Fridays",
    "Saturdays",
    "Sundays",
)
AVAILABILITY_SLOTS = ("morning", "noon", "evening")
