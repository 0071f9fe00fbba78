"""Read adapter over the DriverProfile flag bag.

All alias lookups go through here so the rest of the workflow never
re-derives which field names mean what.
"""

from __future__ import annotations

from typing import Any, Mapping

from workflow.progress_stages import STAGE_ALIASES, Stage


def read_alias(profile: Mapping[str, Any], alias: str) -> object:
    """Read one alias from a profile.

    A dotted alias matches a literal flat key first, then the nested path.
    """
    flat_value = profile.get(alias)
    if flat_value is not None:
        return flat_value
    return _read_nested(profile, alias)


def is_stage_asserted(profile: Mapping[str, Any], stage: Stage) -> bool:
    """Return whether any alias of the stage is exactly ``True``.

    Args:
        profile: DriverProfile flag bag.
        stage: Stage to test.

    Returns:
        True when at least one alias holds the boolean ``True``, either as
        a flat key or through its nested path. Truthy strings and numbers
        do not count.
    """
    for alias in STAGE_ALIASES.get(stage, ()):
        if profile.get(alias) is True or _read_nested(profile, alias) is True:
            return True
    return False


def first_present(profile: Mapping[str, Any], *aliases: str) -> object:
    """Return the first alias value that is neither missing nor empty."""
    for alias in aliases:
        value = read_alias(profile, alias)
        if value is not None and value != "":
            return value
    return None


def _read_nested(profile: Mapping[str, Any], alias: str) -> object:
    if "." not in alias:
        return None
    current: object = profile
    for segment in alias.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
    return current
