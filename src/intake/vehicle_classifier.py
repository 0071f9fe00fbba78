"""Vehicle category classification from raw intake payloads.

The intake payload carries a free-text vehicle descriptor at one of
several historical paths. The first non-empty descriptor wins and maps
onto exactly two categories; anything unrecognised counts as a car.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Any, Mapping

DESCRIPTOR_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "mot"),
    ("mot",),
    ("applicant", "data", "mot"),
    ("data", "vehicle_type"),
    ("vehicle_type",),
    ("vehicle",),
    ("applicant", "data", "vehicle_type"),
)
CAR_TYPE_MARKERS: tuple[str, ...] = (
    "suv",
    "7 seater",
    "7-seater",
    "7seater",
    "hatchback",
    "sedan",
    "saloon",
    "estate",
)
_SEPARATORS = re.compile(r"[\s\-]+")


class VehicleCategory(str, Enum):
    """Canonical vehicle categories."""

    VAN = "van"
    CAR = "car"


@dataclass(frozen=True)
class VehicleDescriptor:
    """Descriptor found in a payload, for debug output.

    Attributes:
        path: Dotted path the descriptor was read from, or None.
        descriptor: Raw descriptor text, or None when nothing was found.
        category: Resulting category.
        marker: Car-type marker the descriptor matched, if any.
    """

    path: str | None
    descriptor: str | None
    category: VehicleCategory
    marker: str | None = None


def classify_vehicle(raw_payload: object) -> VehicleCategory:
    """Classify a raw payload or bare descriptor string.

    Args:
        raw_payload: Intake payload mapping, a descriptor string, or None.

    Returns:
        VAN when the descriptor mentions a van, otherwise CAR.
    """
    return describe_vehicle(raw_payload).category


def describe_vehicle(raw_payload: object) -> VehicleDescriptor:
    """Locate the vehicle descriptor and classify it.

    Args:
        raw_payload: Intake payload mapping, a descriptor string, or None.

    Returns:
        Descriptor location, text, category and matched marker.
    """
    path, descriptor = _find_descriptor(raw_payload)
    category, marker = _categorize(descriptor)
    return VehicleDescriptor(path=path, descriptor=descriptor, category=category, marker=marker)


def _find_descriptor(raw_payload: object) -> tuple[str | None, str | None]:
    if isinstance(raw_payload, str):
        return (None, raw_payload) if raw_payload.strip() else (None, None)
    if not isinstance(raw_payload, Mapping):
        return None, None
    for path in DESCRIPTOR_PATHS:
        value = _read_path(raw_payload, path)
        if isinstance(value, str) and value.strip():
            return ".".join(path), value
    return None, None


def _read_path(payload: Mapping[str, Any], path: tuple[str, ...]) -> object:
    current: object = payload
    for segment in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
    return current


def _compact(text: str) -> str:
    return _SEPARATORS.sub("", text.strip().lower())


def _categorize(descriptor: str | None) -> tuple[VehicleCategory, str | None]:
    # Unmatched and missing descriptors both fall through to CAR.
    if descriptor is None:
        return VehicleCategory.CAR, None
    compact = _compact(descriptor)
    if "van" in compact:
        return VehicleCategory.VAN, None
    for marker in CAR_TYPE_MARKERS:
        if _compact(marker) in compact:
            return VehicleCategory.CAR, marker
    return VehicleCategory.CAR, None
