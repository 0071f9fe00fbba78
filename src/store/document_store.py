"""File-backed document collections.

This module persists per-applicant documents as one JSON file per
collection under the data root. Document ids are case-preserving, so
rows written under different email casings stay distinct, exactly as
the upstream document store keeps them.

Writes follow merge semantics: nested mappings are merged key by key,
and ``None`` stores an explicit null. ``merge_if`` evaluates a predicate
and applies the merge under one lock, giving callers a compare-and-set.
"""

from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from core.config import OnboardConfig
from core.constants import COLLECTION_FILE_SUFFIX, COLLECTIONS_DIR_NAME
from core.errors import OnboardStoreError
from core.logging_config import get_logger
from core.types import Document
from store.document_io import read_collection_file, write_collection_file

_LOGGER = get_logger(__name__)
_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()

DocumentPredicate = Callable[[Document | None], bool]


class DocumentStore:
    """Document collection store rooted at the configured data root.

    All store instances sharing one data root share one write lock, so
    conditional writes are atomic across clients in the same process.
    """

    def __init__(self, config: OnboardConfig) -> None:
        """Initialize document store from config.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._collections_root = config.data_root / COLLECTIONS_DIR_NAME
        self._collections_root.mkdir(parents=True, exist_ok=True)
        self._lock = _lock_for(self._collections_root)

    @property
    def data_root(self) -> Path:
        """Return the configured data root."""
        return self._config.data_root

    def get(self, collection: str, doc_id: str) -> Document | None:
        """Read one document by exact id.

        Args:
            collection: Collection name.
            doc_id: Exact document id.

        Returns:
            Document copy, or None when absent.
        """
        documents = read_collection_file(self._collection_path(collection))
        document = documents.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    def exists(self, collection: str, doc_id: str) -> bool:
        """Return whether a document exists under the exact id."""
        return self.get(collection, doc_id) is not None

    def list_documents(self, collection: str) -> dict[str, Document]:
        """Read every document in a collection with one file read.

        Args:
            collection: Collection name.

        Returns:
            Mapping of document id to document copy.
        """
        documents = read_collection_file(self._collection_path(collection))
        return copy.deepcopy(documents)

    def set(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> None:
        """Overwrite one document.

        Args:
            collection: Collection name.
            doc_id: Document id.
            document: Full document payload.
        """
        with self._lock:
            collection_path = self._collection_path(collection)
            documents = read_collection_file(collection_path)
            documents[doc_id] = copy.deepcopy(dict(document))
            write_collection_file(collection_path, documents)

    def create(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> None:
        """Create one document, refusing to replace an existing one.

        Args:
            collection: Collection name.
            doc_id: Document id.
            document: Full document payload.

        Raises:
            OnboardStoreError: If the document already exists.
        """
        with self._lock:
            collection_path = self._collection_path(collection)
            documents = read_collection_file(collection_path)
            if doc_id in documents:
                raise OnboardStoreError(
                    f"Document {collection}/{doc_id} already exists and is immutable. "
                    "Create a new document id instead of overwriting."
                )
            documents[doc_id] = copy.deepcopy(dict(document))
            write_collection_file(collection_path, documents)

    def merge(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> Document:
        """Merge fields into one document, creating it when absent.

        Args:
            collection: Collection name.
            doc_id: Document id.
            fields: Fields to merge.

        Returns:
            Merged document copy.
        """
        with self._lock:
            collection_path = self._collection_path(collection)
            documents = read_collection_file(collection_path)
            merged = deep_merge(documents.get(doc_id, {}), fields)
            documents[doc_id] = merged
            write_collection_file(collection_path, documents)
            return copy.deepcopy(merged)

    def merge_if(
        self,
        collection: str,
        doc_id: str,
        condition: DocumentPredicate,
        fields: Mapping[str, Any],
    ) -> bool:
        """Merge fields only when the condition holds for the current document.

        The read, the predicate and the write run under the store lock, so
        no other writer can interleave between check and write.

        Args:
            collection: Collection name.
            doc_id: Document id.
            condition: Predicate evaluated against the current document.
            fields: Fields to merge when the predicate holds.

        Returns:
            Whether the merge was applied.
        """
        with self._lock:
            collection_path = self._collection_path(collection)
            documents = read_collection_file(collection_path)
            current = documents.get(doc_id)
            if not condition(copy.deepcopy(current) if current is not None else None):
                return False
            documents[doc_id] = deep_merge(current or {}, fields)
            write_collection_file(collection_path, documents)
        _LOGGER.debug("conditional_merge_applied", collection=collection, doc_id=doc_id)
        return True

    def _collection_path(self, collection: str) -> Path:
        """Return the JSON file path for a collection.

        Raises:
            OnboardStoreError: If the collection name is not a plain name.
        """
        if not collection or "/" in collection or collection.startswith("."):
            raise OnboardStoreError(
                f"Invalid collection name {collection!r}. Use a plain name like 'drivers'."
            )
        return self._collections_root / f"{collection}{COLLECTION_FILE_SUFFIX}"


def deep_merge(base: Mapping[str, Any], fields: Mapping[str, Any]) -> Document:
    """Merge fields into a copy of base, recursing into nested mappings.

    Args:
        base: Existing document.
        fields: Fields to merge.

    Returns:
        New merged document.
    """
    merged: Document = copy.deepcopy(dict(base))
    for key, value in fields.items():
        existing = merged.get(key)
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _lock_for(collections_root: Path) -> threading.RLock:
    """Return the shared write lock for one collections root."""
    resolved = collections_root.resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(resolved)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[resolved] = lock
        return lock
