"""Unit tests for administrative progress resets."""

from __future__ import annotations

from dataclasses import replace

import pytest

from admin.admin_users import AdminUser
from core.config import OnboardConfig
from core.errors import NotFoundError, PermissionDeniedError
from store.document_store import DocumentStore
from workflow.progress_reset import ProgressReset, reset_fields
from workflow.progress_stages import STAGE_ALIASES, Stage
from workflow.progress_state import resolve_progress

_SUPER = AdminUser(email="root@example.com", role="super_admin")


def _reset(tmp_path) -> tuple[ProgressReset, DocumentStore]:
    store = DocumentStore(replace(OnboardConfig.from_env(), data_root=tmp_path))
    return ProgressReset(store), store


def test_reset_fields_cover_every_alias_head() -> None:
    """Every flat alias and progress map should be cleared."""
    fields = reset_fields()
    heads = {alias.partition(".")[0] for aliases in STAGE_ALIASES.values() for alias in aliases}

    assert heads <= set(fields)


def test_reset_clears_all_aliases_and_keeps_personal_data(tmp_path) -> None:
    """After a reset the applicant should resume at WELCOME with contact data intact."""
    reset, store = _reset(tmp_path)
    store.set(
        "drivers",
        "jo@example.com",
        {
            "name": "Jo",
            "phoneVerified": True,
            "acknowledgedFeeStructure": True,
            "progress_liabilities.confirmed": True,
            "progress_role": {"confirmed": True},
            "onboardingStatus": "completed",
        },
    )

    profile = reset.reset_progress(_SUPER, "Jo@Example.com")

    assert (
        resolve_progress(profile).current_stage is Stage.WELCOME
        and profile["name"] == "Jo"
        and profile["onboardingStatus"] == "started"
        and profile["resetBy"] == "root@example.com"
    )


def test_reset_requires_permission(tmp_path) -> None:
    """View-only admins cannot reset progress."""
    reset, store = _reset(tmp_path)
    store.set("drivers", "jo@example.com", {"phoneVerified": True})
    viewer = AdminUser(email="view@example.com", role="admin_view")

    with pytest.raises(PermissionDeniedError):
        reset.reset_progress(viewer, "jo@example.com")

    assert (store.get("drivers", "jo@example.com") or {})["phoneVerified"] is True


def test_reset_missing_profile_raises_not_found(tmp_path) -> None:
    """Resetting an unknown applicant should raise NotFoundError."""
    reset, _ = _reset(tmp_path)

    with pytest.raises(NotFoundError):
        reset.reset_progress(_SUPER, "ghost@example.com")

    assert True


def test_reset_reaches_legacy_cased_profile(tmp_path) -> None:
    """Resets addressed in lower case should clear a legacy-cased profile."""
    reset, store = _reset(tmp_path)
    store.set("drivers", "Jo@Example.com", {"phoneVerified": True, "progressStage": "verify"})

    reset.reset_progress(_SUPER, "jo@example.com")
    profile = store.get("drivers", "Jo@Example.com") or {}

    assert (
        set(store.list_documents("drivers")) == {"Jo@Example.com"}
        and profile["progressStage"] == "welcome"
    )
