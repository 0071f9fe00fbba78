"""Latest-record selection shared by report lookups and dashboard joins."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping

from core.timestamps import EPOCH, parse_timestamp
from core.types import Document


def select_latest(
    documents: Mapping[str, Document] | Iterable[tuple[str, Document]],
    timestamp_field: str = "createdAt",
) -> tuple[str, Document] | None:
    """Pick the newest document by timestamp.

    Missing or unparseable timestamps sort as the epoch. Equal timestamps
    are tie-broken by the greatest document id, so the choice never
    depends on store iteration order.

    Args:
        documents: Document id to document mapping, or id/document pairs.
        timestamp_field: Field holding the creation timestamp.

    Returns:
        Winning ``(doc_id, document)`` pair, or None when empty.
    """
    pairs = documents.items() if isinstance(documents, Mapping) else documents
    best: tuple[str, Document] | None = None
    best_key: tuple[datetime, str] | None = None
    for doc_id, document in pairs:
        candidate_key = (parse_timestamp(document.get(timestamp_field)) or EPOCH, doc_id)
        if best_key is None or candidate_key > best_key:
            best, best_key = (doc_id, document), candidate_key
    return best
