"""Runtime configuration model for the onboarding core.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT
from core.errors import OnboardConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class OnboardConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for document collections.
        super_admin_email: Optional email bootstrapped as the first super admin.
        progress_warnings: Whether out-of-order progress warnings are logged.
    """

    data_root: Path
    super_admin_email: str | None
    progress_warnings: bool

    @classmethod
    def from_env(cls) -> "OnboardConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            OnboardConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("ONBOARD_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        super_admin_email = os.getenv("ONBOARD_SUPER_ADMIN_EMAIL") or None
        warnings_value = os.getenv("ONBOARD_PROGRESS_WARNINGS", "true")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            super_admin_email=super_admin_email,
            progress_warnings=_parse_bool("ONBOARD_PROGRESS_WARNINGS", warnings_value),
        )


def _parse_bool(variable_name: str, raw_value: str) -> bool:
    """Parse a boolean environment value.

    Args:
        variable_name: Environment variable name for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean.

    Raises:
        OnboardConfigError: If value is not a recognised boolean literal.
    """
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise OnboardConfigError(
        f"Invalid {variable_name} value: "
        f"expected one of {', '.join(_TRUE_VALUES + _FALSE_VALUES)}, got '{raw_value}'. "
        f"Set {variable_name} to true or false."
    )
