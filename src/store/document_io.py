"""JSON I/O helpers for document collection files.

This module isolates collection file reads and writes.
It keeps document store orchestration focused on merge and lookup flow.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from core.errors import OnboardStoreError


def read_collection_file(collection_path: Path) -> dict[str, dict[str, Any]]:
    """Read and validate one collection payload.

    Args:
        collection_path: Collection JSON path.

    Returns:
        Mapping of document id to document; empty when the file is missing.

    Raises:
        OnboardStoreError: If the file cannot be read or is malformed.
    """
    if not collection_path.exists():
        return {}
    try:
        payload = json.loads(collection_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise OnboardStoreError(
            f"Failed to parse collection file at {collection_path}: {error.msg}. "
            "Restore the collection from a backup or remove the corrupt file."
        ) from error
    except OSError as error:
        raise OnboardStoreError(
            f"Failed to read collection file {collection_path}: {error}."
        ) from error
    if not isinstance(payload, dict):
        raise OnboardStoreError(
            f"Failed to parse collection file at {collection_path}: "
            "expected JSON object at top level."
        )
    documents: dict[str, dict[str, Any]] = {}
    for doc_id, document in payload.items():
        if not isinstance(document, dict):
            raise OnboardStoreError(
                f"Invalid document {doc_id!r} in {collection_path}: expected JSON object."
            )
        documents[str(doc_id)] = document
    return documents


def write_collection_file(collection_path: Path, documents: dict[str, dict[str, Any]]) -> None:
    """Write one collection payload atomically.

    Args:
        collection_path: Collection JSON path.
        documents: Mapping of document id to document.

    Raises:
        OnboardStoreError: If the file cannot be written.
    """
    temp_path = collection_path.with_suffix(collection_path.suffix + ".tmp")
    try:
        temp_path.write_text(
            json.dumps(documents, indent=2, sort_keys=True, default=str) + "\n",
            encoding="utf-8",
        )
        os.replace(temp_path, collection_path)
    except OSError as error:
        raise OnboardStoreError(
            f"Failed to write collection file {collection_path}: {error}. "
            "Check data root permissions and retry."
        ) from error
