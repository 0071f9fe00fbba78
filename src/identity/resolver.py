"""Canonical key resolution across independently keyed stores.

Rows written before email normalization was enforced may still sit under
their original casing. Resolution therefore tries the normalized key
first, then the original casing, and pins whichever key matches first so
every sub-lookup in one pass uses the same key.
"""

from __future__ import annotations

from typing import Callable, Container, Mapping, Sequence

from core.constants import (
    AVAILABILITY_COLLECTION,
    DRIVERS_COLLECTION,
    REPORTS_COLLECTION,
    VERIFICATION_COLLECTION,
)
from core.errors import AuthError, IdentityResolutionFailure
from core.logging_config import get_logger
from core.types import CanonicalKey, Identity, ResolvedIdentity
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)

RESOLUTION_STORE_ORDER: tuple[str, ...] = (
    DRIVERS_COLLECTION,
    AVAILABILITY_COLLECTION,
    VERIFICATION_COLLECTION,
    REPORTS_COLLECTION,
)

# Reports are keyed by report id, so point pinning skips them.
POINT_STORE_ORDER: tuple[str, ...] = RESOLUTION_STORE_ORDER[:-1]

KeyProbe = Callable[[str, str], bool]


def normalize_email(raw_email: object) -> CanonicalKey:
    """Lower-case and trim an email; non-strings normalize to ``""``."""
    if not isinstance(raw_email, str):
        return ""
    return raw_email.strip().lower()


def authenticated_email(identity: Identity | None) -> str:
    """Return the trimmed email of an authenticated identity as supplied.

    The original casing is kept so key lookups can reach rows stored
    under it.

    Raises:
        AuthError: If there is no identity or it carries no email.
    """
    raw_email = identity.email if identity is not None else None
    if not normalize_email(raw_email):
        raise AuthError(
            "No authenticated identity with an email is available. "
            "Sign in before recording onboarding progress."
        )
    return str(raw_email).strip()


def require_identity(identity: Identity | None) -> CanonicalKey:
    """Return the canonical key of an authenticated identity.

    Args:
        identity: Caller identity, possibly missing.

    Returns:
        Normalized email.

    Raises:
        AuthError: If there is no identity or it carries no email.
    """
    return normalize_email(authenticated_email(identity))


class IdentityResolver:
    """Resolves candidate email keys against stores in a fixed order."""

    def __init__(self, store_order: Sequence[str] = RESOLUTION_STORE_ORDER) -> None:
        self._store_order = tuple(store_order)

    @property
    def store_order(self) -> tuple[str, ...]:
        """Return the store walk order."""
        return self._store_order

    def candidates(self, raw_email: object, original: object = None) -> tuple[str, ...]:
        """Build ordered candidate keys for one applicant.

        Args:
            raw_email: Email as supplied by the caller or an applicant doc id.
            original: Optional original-cased email, e.g. the applicant's
                stored ``email`` field.

        Returns:
            Normalized key first, then each distinct non-normalized casing.
            Empty when no usable email was supplied.
        """
        canonical_key = normalize_email(raw_email) or normalize_email(original)
        if not canonical_key:
            return ()
        ordered = [canonical_key]
        for value in (original, raw_email):
            if isinstance(value, str):
                trimmed = value.strip()
                if trimmed and trimmed not in ordered:
                    ordered.append(trimmed)
        return tuple(ordered)

    def resolve(self, candidates: Sequence[str], probe: KeyProbe) -> ResolvedIdentity:
        """Resolve candidates by probing stores in order.

        For each store in the walk order, candidates are tried in order and
        the first ``probe(store, key)`` hit fixes the lookup key for the pass.

        Args:
            candidates: Ordered candidate keys, normalized first.
            probe: Callable reporting whether a store holds a key.

        Returns:
            Resolved identity. When nothing matches, the normalized key is
            used for all lookups and ``matched_store`` is None.
        """
        if not candidates:
            return ResolvedIdentity(canonical_key="", lookup_key="", matched_store=None)
        canonical_key = normalize_email(candidates[0])
        for store_name in self._store_order:
            for candidate in candidates:
                if probe(store_name, candidate):
                    return ResolvedIdentity(
                        canonical_key=canonical_key,
                        lookup_key=candidate,
                        matched_store=store_name,
                    )
        _LOGGER.debug("identity_unmatched", canonical_key=canonical_key)
        return ResolvedIdentity(
            canonical_key=canonical_key,
            lookup_key=canonical_key,
            matched_store=None,
        )

    def resolve_in(
        self,
        candidates: Sequence[str],
        indexes: Mapping[str, Container[str]],
    ) -> ResolvedIdentity:
        """Resolve candidates against prefetched in-memory key indexes.

        Args:
            candidates: Ordered candidate keys.
            indexes: Store name to key container; absent stores never match.

        Returns:
            Resolved identity.
        """
        return self.resolve(candidates, lambda store, key: key in indexes.get(store, ()))

    def document_key(
        self,
        store: DocumentStore,
        collection: str,
        raw_email: object,
    ) -> str:
        """Return the existing document id for an email in one collection.

        Args:
            store: Document store.
            collection: Collection to search.
            raw_email: Caller email.

        Returns:
            The first candidate key with an existing document, else the
            first stored id whose normalized form equals the canonical key.

        Raises:
            IdentityResolutionFailure: If no document matches the email.
        """
        key = _find_key(store, collection, self.candidates(raw_email))
        if key is None:
            raise IdentityResolutionFailure(
                f"No {collection} document exists for {normalize_email(raw_email)!r}. "
                "Check the email or create the record first."
            )
        return key

    def write_key(self, store: DocumentStore, collection: str, raw_email: object) -> str:
        """Return the key a write should target.

        An existing document under any casing is reused so writes never
        fork a profile; otherwise the normalized key is used.
        """
        try:
            return self.document_key(store, collection, raw_email)
        except IdentityResolutionFailure:
            return normalize_email(raw_email)

    def pin(
        self,
        store: DocumentStore,
        raw_email: object,
        collections: Sequence[str] | None = None,
    ) -> ResolvedIdentity:
        """Pin one lookup key for an email by walking stores in order.

        This is the point-lookup counterpart of ``resolve_in``: writes to
        any per-applicant collection should use the pinned key so the
        merged view finds them next to the DriverProfile.

        Args:
            store: Document store.
            raw_email: Caller email.
            collections: Store walk order; defaults to the keyed stores.

        Returns:
            Resolved identity; unmatched emails pin the normalized key.
        """
        candidates = self.candidates(raw_email)
        if not candidates:
            return ResolvedIdentity(canonical_key="", lookup_key="", matched_store=None)
        canonical_key = candidates[0]
        for collection in collections if collections is not None else POINT_STORE_ORDER:
            key = _find_key(store, collection, candidates)
            if key is not None:
                return ResolvedIdentity(
                    canonical_key=canonical_key,
                    lookup_key=key,
                    matched_store=collection,
                )
        return ResolvedIdentity(
            canonical_key=canonical_key,
            lookup_key=canonical_key,
            matched_store=None,
        )


def _find_key(
    store: DocumentStore,
    collection: str,
    candidates: Sequence[str],
) -> str | None:
    """Return the stored id matching the candidates, trying exact keys first."""
    if not candidates:
        return None
    for candidate in candidates:
        if store.exists(collection, candidate):
            return candidate
    canonical_key = normalize_email(candidates[0])
    # Casings the caller never supplied are still the same applicant.
    for doc_id in sorted(store.list_documents(collection)):
        if normalize_email(doc_id) == canonical_key:
            _LOGGER.debug("identity_casing_match", collection=collection, doc_id=doc_id)
            return doc_id
    return None
