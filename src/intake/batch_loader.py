"""YAML applicant batch loading for seeding and replays.

A batch file holds a versioned list of normalized applicant records:

    version: 1
    applicants:
      - email: jo@example.com
        phone: "+44 7700 900000"
        rawPayload:
          data:
            mot: Large Van
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

from core.errors import OnboardDependencyError, OnboardIntakeError
from core.types import ApplicantRecord
from store.record_payload import applicant_record_from_payload

_ALLOWED_ROOT_KEYS = frozenset({"version", "applicants"})


def load_applicant_batch(batch_path: str) -> tuple[ApplicantRecord, ...]:
    """Load and validate a YAML applicant batch from disk.

    Args:
        batch_path: File path to the YAML batch.

    Returns:
        Parsed applicant records in file order.

    Raises:
        OnboardDependencyError: If PyYAML is unavailable.
        OnboardIntakeError: If the file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(batch_path)
    root_mapping = _expect_mapping(payload, "applicant batch root")
    _validate_root_keys(root_mapping)
    _parse_version(root_mapping)
    raw_applicants = root_mapping.get("applicants")
    if raw_applicants is None:
        raise OnboardIntakeError(
            "Applicant batch missing required field 'applicants'. Add a list of records."
        )
    rows = _expect_sequence(raw_applicants, "applicant batch applicants")
    records = []
    for index, row in enumerate(rows):
        row_mapping = _expect_mapping(row, f"applicant #{index + 1}")
        try:
            records.append(applicant_record_from_payload(row_mapping))
        except OnboardIntakeError as error:
            raise OnboardIntakeError(f"Invalid applicant #{index + 1}: {error}") from error
    return tuple(records)


def _load_yaml_payload(batch_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise OnboardDependencyError(
            "YAML batch support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    batch_file = Path(batch_path).expanduser().resolve()
    if not batch_file.exists():
        raise OnboardIntakeError(
            f"Applicant batch file does not exist at {batch_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(batch_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise OnboardIntakeError(
            f"Failed to read applicant batch at {batch_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise OnboardIntakeError(
            f"Failed to parse YAML applicant batch at {batch_file}: {error}. "
            "Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise OnboardIntakeError(
            f"Applicant batch at {batch_file} is empty. Define 'version' and 'applicants'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise OnboardIntakeError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
        return cast(Mapping[str, object], value)
    raise OnboardIntakeError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise OnboardIntakeError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise OnboardIntakeError("Applicant batch field 'version' must be an integer. Set version: 1.")
    if raw_version != 1:
        raise OnboardIntakeError(f"Unsupported applicant batch version {raw_version}. Use version: 1.")
    return raw_version


def _validate_root_keys(root_mapping: Mapping[str, object]) -> None:
    unknown_keys = sorted(set(root_mapping) - _ALLOWED_ROOT_KEYS)
    if unknown_keys:
        raise OnboardIntakeError(
            f"Unsupported applicant batch keys: {', '.join(unknown_keys)}. "
            "Use only 'version' and 'applicants'."
        )
