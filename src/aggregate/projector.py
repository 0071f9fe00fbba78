"""Per-applicant joins across the five onboarding stores.

``project_all`` reads every collection once into in-memory maps and
joins each applicant with O(1) lookups. ``project_one`` serves a single
applicant with point lookups. Both resolve one lookup key per applicant
and reuse it for every auxiliary store, and both degrade a failing
auxiliary store to empty data instead of failing the whole request.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from aggregate.report_builder import build_report_snapshot
from core.constants import (
    APPLICANTS_COLLECTION,
    AVAILABILITY_COLLECTION,
    DRIVERS_COLLECTION,
    REPORTS_COLLECTION,
    VERIFICATION_COLLECTION,
)
from core.errors import AggregationPartialFailure, NotFoundError, OnboardStoreError
from core.logging_config import get_logger
from core.timestamps import EPOCH, Clock, parse_timestamp, to_iso, utc_now
from core.types import CanonicalKey, Document, ResolvedIdentity
from identity.resolver import IdentityResolver, normalize_email
from store.document_store import DocumentStore
from store.latest_record import select_latest
from workflow.progress_state import ProgressPosition, resolve_progress, stage_label

_LOGGER = get_logger(__name__)

ReportGroups = dict[str, dict[str, Document]]


@dataclass(frozen=True)
class MergedView:
    """One applicant joined across all stores.

    Attributes:
        email: Canonical key; also the view id.
        fields: ApplicantRecord fields overridden by DriverProfile fields.
        availability: AvailabilityRecord, or None.
        verification: VerificationRecord, or None.
        report: Latest ReportSnapshot with its ``id``, or None.
        created_at: Resolved creation time (ISO).
        updated_at: Resolved update time (ISO).
        progress: Resolved onboarding position.
        stage_label: Dashboard label for the position.
        lookup_key: Key casing every sub-lookup used.
        has_profile: Whether a DriverProfile was found.
    """

    email: CanonicalKey
    fields: Mapping[str, Any]
    availability: Document | None
    verification: Document | None
    report: Document | None
    created_at: str
    updated_at: str
    progress: ProgressPosition
    stage_label: str
    lookup_key: str
    has_profile: bool = False

    @property
    def id(self) -> CanonicalKey:
        """Return the view id, pinned to the canonical key."""
        return self.email

    def to_payload(self) -> Document:
        """Serialize view into the dashboard payload shape."""
        payload: Document = {"id": self.email, **dict(self.fields)}
        payload.update(
            {
                "email": self.email,
                "availability": self.availability,
                "verification": self.verification,
                "report": self.report,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
                "progress": self.progress.to_payload(),
                "stageLabel": self.stage_label,
            }
        )
        return payload


class AggregationProjector:
    """Builds merged applicant views for dashboards and reports."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def project_all(self, cities: Iterable[str] | None = None) -> list[MergedView]:
        """Join every applicant, newest first.

        Args:
            cities: Optional city allow-list, compared case-insensitively.

        Returns:
            Views sorted by ``createdAt`` descending, then email ascending.

        Raises:
            OnboardStoreError: If the applicant collection cannot be read.
        """
        applicants = self._store.list_documents(APPLICANTS_COLLECTION)
        drivers = self._prefetch(DRIVERS_COLLECTION)
        availability = self._prefetch(AVAILABILITY_COLLECTION)
        verification = self._prefetch(VERIFICATION_COLLECTION)
        reports = _group_reports(self._prefetch(REPORTS_COLLECTION))
        indexes: dict[str, Mapping[str, Any]] = {
            DRIVERS_COLLECTION: drivers,
            AVAILABILITY_COLLECTION: availability,
            VERIFICATION_COLLECTION: verification,
            REPORTS_COLLECTION: reports,
        }
        casings = _casing_index(drivers, availability, verification)
        now = self._clock()
        views = []
        for doc_id, applicant in applicants.items():
            candidates = self._resolver.candidates(doc_id, applicant.get("email"))
            if not candidates:
                _LOGGER.warning("applicant_without_email", doc_id=doc_id)
                continue
            candidates += tuple(
                key for key in casings.get(candidates[0], ()) if key not in candidates
            )
            resolved = self._resolver.resolve_in(candidates, indexes)
            key = resolved.lookup_key
            views.append(
                _merge_view(
                    resolved,
                    applicant=applicant,
                    profile=drivers.get(key),
                    availability=availability.get(key),
                    verification=verification.get(key),
                    report=_latest_report(reports.get(resolved.canonical_key)),
                    now=now,
                )
            )
        allowed = {city.strip().lower() for city in cities} if cities is not None else None
        if allowed is not None:
            views = [view for view in views if _view_city(view) in allowed]
        ordered = sort_views(views)
        _LOGGER.info("aggregation_completed", applications=len(ordered))
        return ordered

    def project_one(self, email: str) -> MergedView:
        """Join one applicant with point lookups.

        Args:
            email: Applicant email in any casing.

        Returns:
            Merged view for the applicant.

        Raises:
            NotFoundError: If neither an ApplicantRecord nor a DriverProfile
                exists under any candidate key.
        """
        candidates = self._resolver.candidates(email)
        if not candidates:
            raise NotFoundError("An email is required to look up an applicant.")
        applicant = self._store.get(APPLICANTS_COLLECTION, candidates[0])
        if applicant is not None:
            candidates = self._resolver.candidates(email, applicant.get("email"))
        reports = _group_reports(self._prefetch(REPORTS_COLLECTION))
        resolved = self._resolver.resolve(candidates, self._point_probe(reports))
        if resolved.matched_store in (None, REPORTS_COLLECTION):
            pinned = self._resolver.pin(self._store, email)
            if pinned.matched:
                resolved = pinned
        key = resolved.lookup_key
        profile = self._point(DRIVERS_COLLECTION, key)
        if applicant is None and profile is None:
            raise NotFoundError(
                f"No applicant or driver profile exists for {normalize_email(email)}. "
                "Check the email address."
            )
        return _merge_view(
            resolved,
            applicant=applicant,
            profile=profile,
            availability=self._point(AVAILABILITY_COLLECTION, key),
            verification=self._point(VERIFICATION_COLLECTION, key),
            report=_latest_report(reports.get(resolved.canonical_key)),
            now=self._clock(),
        )

    def preview_report(self, email: str) -> Document:
        """Return the latest ReportSnapshot, or an unpersisted preview.

        Args:
            email: Applicant email in any casing.

        Returns:
            The latest stored snapshot when one exists, otherwise a snapshot
            synthesized from current store state and marked ``preview``.

        Raises:
            NotFoundError: If the applicant is unknown.
        """
        view = self.project_one(email)
        if view.report is not None:
            return view.report
        snapshot = build_report_snapshot(
            view.email,
            profile=view.fields,
            applicant=None,
            availability=view.availability,
            verification=view.verification,
            moment=self._clock(),
        )
        snapshot["preview"] = True
        return snapshot

    def _prefetch(self, collection: str) -> dict[str, Document]:
        try:
            return self._fetch_auxiliary(collection)
        except AggregationPartialFailure as error:
            _LOGGER.warning("aggregation_partial_failure", collection=collection, error=str(error))
            return {}

    def _fetch_auxiliary(self, collection: str) -> dict[str, Document]:
        try:
            return self._store.list_documents(collection)
        except (OnboardStoreError, OSError) as error:
            raise AggregationPartialFailure(
                f"Failed to load {collection} for aggregation: {error}. "
                "Views are served without this collection."
            ) from error

    def _point(self, collection: str, key: str) -> Document | None:
        try:
            return self._store.get(collection, key)
        except (OnboardStoreError, OSError) as error:
            _LOGGER.warning(
                "aggregation_partial_failure",
                collection=collection,
                key=key,
                error=str(error),
            )
            return None

    def _point_probe(self, reports: ReportGroups) -> Callable[[str, str], bool]:
        def probe(collection: str, key: str) -> bool:
            if collection == REPORTS_COLLECTION:
                return key in reports
            return self._point(collection, key) is not None

        return probe


def sort_views(views: Iterable[MergedView]) -> list[MergedView]:
    """Sort views by ``createdAt`` descending, then email ascending."""
    by_email = sorted(views, key=lambda view: view.email)
    return sorted(by_email, key=_created_sort_key, reverse=True)


def report_owner(report: Mapping[str, Any]) -> str | None:
    """Return the email a report belongs to (``driverEmail`` over ``email``)."""
    owner = report.get("driverEmail") or report.get("email")
    return owner if isinstance(owner, str) and owner else None


def _casing_index(*collections: Mapping[str, Document]) -> dict[str, list[str]]:
    """Map each normalized email to the stored ids that normalize to it."""
    index: dict[str, list[str]] = {}
    for documents in collections:
        for doc_id in sorted(documents):
            keys = index.setdefault(normalize_email(doc_id), [])
            if doc_id not in keys:
                keys.append(doc_id)
    return index


def _group_reports(reports: Mapping[str, Document]) -> ReportGroups:
    groups: ReportGroups = {}
    for doc_id, report in reports.items():
        owner = report_owner(report)
        if owner is not None:
            groups.setdefault(normalize_email(owner), {})[doc_id] = report
    return groups


def _latest_report(group: Mapping[str, Document] | None) -> Document | None:
    if not group:
        return None
    latest = select_latest(group)
    if latest is None:
        return None
    doc_id, report = latest
    return {"id": doc_id, **report}


def _merge_view(
    resolved: ResolvedIdentity,
    applicant: Mapping[str, Any] | None,
    profile: Mapping[str, Any] | None,
    availability: Document | None,
    verification: Document | None,
    report: Document | None,
    now: datetime,
) -> MergedView:
    applicant_fields = dict(applicant or {})
    profile_fields = dict(profile or {})
    fields = {**applicant_fields, **profile_fields}
    fields["id"] = resolved.canonical_key
    fields["email"] = resolved.canonical_key
    created = _first_timestamp(applicant_fields.get("createdAt"), profile_fields.get("createdAt"))
    updated = _first_timestamp(profile_fields.get("updatedAt"), applicant_fields.get("updatedAt"))
    position = resolve_progress(profile_fields)
    return MergedView(
        email=resolved.canonical_key,
        fields=fields,
        availability=availability,
        verification=verification,
        report=report,
        created_at=to_iso(created or now),
        updated_at=to_iso(updated or now),
        progress=position,
        stage_label=stage_label(profile_fields, position),
        lookup_key=resolved.lookup_key,
        has_profile=profile is not None,
    )


def _first_timestamp(*raw_values: object) -> datetime | None:
    for raw_value in raw_values:
        parsed = parse_timestamp(raw_value)
        if parsed is not None:
            return parsed
    return None


def _created_sort_key(view: MergedView) -> datetime:
    return parse_timestamp(view.created_at) or EPOCH


def _view_city(view: MergedView) -> str:
    city = view.fields.get("city")
    return city.strip().lower() if isinstance(city, str) else ""
