"""Shared document serialization for ApplicantRecord payloads.

This module centralizes ApplicantRecord document mapping.
It is reused by intake upserts and YAML batch loading.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.errors import OnboardIntakeError
from core.types import ApplicantRecord

_FIELD_NAMES = {
    "email": "email",
    "phone": "phone",
    "name": "name",
    "applicant_id": "applicantId",
    "funnel_id": "funnelId",
    "stage": "stage",
    "status": "status",
    "city": "city",
    "country": "country",
}


def applicant_record_to_document(record: ApplicantRecord) -> dict[str, object]:
    """Serialize ApplicantRecord into a store document.

    Args:
        record: Applicant record instance.

    Returns:
        Document fields in stored camelCase naming. Unset optional fields
        are omitted so merges do not overwrite stored values with nulls.
    """
    document: dict[str, object] = {}
    for attribute, stored_name in _FIELD_NAMES.items():
        value = getattr(record, attribute)
        if value is not None:
            document[stored_name] = value
    document["rawPayload"] = dict(record.raw_payload)
    return document


def applicant_record_from_payload(payload: Mapping[str, Any]) -> ApplicantRecord:
    """Deserialize a camelCase or snake_case mapping into ApplicantRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed ApplicantRecord.

    Raises:
        OnboardIntakeError: If the email is missing or fields are malformed.
    """
    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        raise OnboardIntakeError(
            "Applicant record is missing an email. "
            "Every intake record must carry the applicant's email address."
        )
    values: dict[str, Any] = {}
    for attribute, stored_name in _FIELD_NAMES.items():
        if attribute == "email":
            continue
        raw_value = payload.get(stored_name, payload.get(attribute))
        values[attribute] = None if raw_value is None else str(raw_value)
    raw_payload = payload.get("rawPayload", payload.get("raw_payload", {}))
    if raw_payload is None:
        raw_payload = {}
    if not isinstance(raw_payload, Mapping):
        raise OnboardIntakeError(
            f"Applicant record for {email!r} has a non-mapping rawPayload. "
            "Pass the intake payload as a nested object."
        )
    return ApplicantRecord(email=email, raw_payload=dict(raw_payload), **values)
