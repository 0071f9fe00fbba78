"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ONBOARD_ENV_VARS = (
    "ONBOARD_DATA_ROOT",
    "ONBOARD_SUPER_ADMIN_EMAIL",
    "ONBOARD_PROGRESS_WARNINGS",
)


def pytest_sessionstart() -> None:
    """Add src and repository root to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_root in (project_root / "src", project_root):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture(autouse=True)
def _isolated_onboard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host ONBOARD_* settings out of config built by tests."""
    for variable in _ONBOARD_ENV_VARS:
        monkeypatch.delenv(variable, raising=False)
