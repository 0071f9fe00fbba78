"""Admin users, role permissions and operator status updates.

Roles form a fixed ladder. ``super_admin`` can do everything,
``app_admin`` manages fleet and view admins and resets progress,
``admin_fleet`` reviews applications, and ``admin_view`` only reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Iterable, Literal, Mapping, cast

from core.constants import ADMINS_COLLECTION, DRIVERS_COLLECTION
from core.errors import (
    AuthError,
    IdentityResolutionFailure,
    NotFoundError,
    OnboardValidationError,
    PermissionDeniedError,
)
from core.logging_config import get_logger
from core.timestamps import Clock, to_iso, utc_now
from core.types import Document
from identity.resolver import IdentityResolver, normalize_email
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

AdminRole = Literal["super_admin", "app_admin", "admin_fleet", "admin_view"]
Permission = Literal["view_applications", "update_status", "reset_progress", "manage_admins"]
ApplicationStatus = Literal["pending", "on_hold", "approved", "hired", "rejected", "withdrawn"]

ADMIN_ROLES: tuple[AdminRole, ...] = ("super_admin", "app_admin", "admin_fleet", "admin_view")
APPLICATION_STATUSES: tuple[ApplicationStatus, ...] = (
    "pending",
    "on_hold",
    "approved",
    "hired",
    "rejected",
    "withdrawn",
)
ROLE_PERMISSIONS: dict[AdminRole, frozenset[Permission]] = {
    "super_admin": frozenset(
        {"view_applications", "update_status", "reset_progress", "manage_admins"}
    ),
    "app_admin": frozenset(
        {"view_applications", "update_status", "reset_progress", "manage_admins"}
    ),
    "admin_fleet": frozenset({"view_applications", "update_status"}),
    "admin_view": frozenset({"view_applications"}),
}
MANAGEABLE_ROLES: dict[AdminRole, tuple[AdminRole, ...]] = {
    "super_admin": ADMIN_ROLES,
    "app_admin": ("admin_fleet", "admin_view"),
    "admin_fleet": (),
    "admin_view": (),
}


@dataclass(frozen=True)
class AdminUser:
    """Role-tagged operator identity.

    Attributes:
        email: Normalized admin email.
        role: Admin role.
        name: Display name.
        accessible_cities: Cities a restricted admin may see; empty means all.
    """

    email: str
    role: AdminRole
    name: str | None = None
    accessible_cities: tuple[str, ...] = ()

    def can(self, permission: Permission) -> bool:
        """Return whether the role grants a permission."""
        return permission in ROLE_PERMISSIONS[self.role]

    def visible_cities(self) -> tuple[str, ...] | None:
        """Return the city allow-list, or None when every city is visible."""
        if self.role == "super_admin" or not self.accessible_cities:
            return None
        return self.accessible_cities


def parse_role(raw_role: object) -> AdminRole:
    """Parse a stored or user-supplied role name.

    Raises:
        OnboardValidationError: If the role is unknown.
    """
    if raw_role in ADMIN_ROLES:
        return cast(AdminRole, raw_role)
    raise OnboardValidationError(
        f"Unsupported admin role '{raw_role}'. Use one of: {', '.join(ADMIN_ROLES)}."
    )


def parse_status(raw_status: object) -> ApplicationStatus:
    """Parse an application review status.

    Raises:
        OnboardValidationError: If the status is unknown.
    """
    if raw_status in APPLICATION_STATUSES:
        return cast(ApplicationStatus, raw_status)
    raise OnboardValidationError(
        f"Unsupported application status '{raw_status}'. "
        f"Use one of: {', '.join(APPLICATION_STATUSES)}."
    )


def admin_from_document(document: Mapping[str, Any]) -> AdminUser:
    """Build an AdminUser from a stored admin document.

    Unknown stored roles degrade to ``admin_view``.
    """
    raw_role = document.get("role")
    role: AdminRole = cast(AdminRole, raw_role) if raw_role in ADMIN_ROLES else "admin_view"
    cities = document.get("accessibleCities") or ()
    return AdminUser(
        email=normalize_email(document.get("email")),
        role=role,
        name=document.get("name"),
        accessible_cities=tuple(str(city) for city in cities),
    )


def require_permission(admin: AdminUser | None, permission: Permission) -> AdminUser:
    """Return the admin if it holds the permission.

    Raises:
        AuthError: If there is no admin identity.
        PermissionDeniedError: If the role lacks the permission.
    """
    if admin is None:
        raise AuthError("This operation requires a signed-in admin. Sign in as an admin first.")
    if not admin.can(permission):
        raise PermissionDeniedError(
            f"Admin role '{admin.role}' lacks the '{permission}' permission. "
            "Ask a super admin to grant a higher role."
        )
    return admin


class AdminDirectory:
    """Admin records and admin-gated application writes."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: IdentityResolver | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._resolver = resolver or IdentityResolver()
        self._clock = clock

    def get(self, email: str) -> AdminUser | None:
        """Return the admin stored under an email, if any."""
        canonical_key = normalize_email(email)
        if not canonical_key:
            return None
        document = self._store.get(ADMINS_COLLECTION, canonical_key)
        if document is None:
            return None
        return admin_from_document({**document, "email": canonical_key})

    def require(self, email: str | None) -> AdminUser:
        """Return the admin for an email or fail.

        Raises:
            AuthError: If the email belongs to no admin.
        """
        admin = self.get(email or "")
        if admin is None:
            raise AuthError(
                f"'{email}' is not an authorized admin. "
                "Use an email registered in the admins collection."
            )
        return admin

    def initialize_super_admin(self, email: str, name: str | None = None) -> AdminUser:
        """Bootstrap the first super admin.

        Calling again with the existing super admin's email returns it
        unchanged.

        Raises:
            OnboardValidationError: If the email is malformed or another
                super admin already exists.
        """
        canonical_key = normalize_email(email)
        if not _EMAIL_PATTERN.match(canonical_key):
            raise OnboardValidationError(
                f"Invalid admin email '{email}'. Provide an address like name@example.com."
            )
        for doc_id, document in self._store.list_documents(ADMINS_COLLECTION).items():
            if document.get("role") != "super_admin":
                continue
            if normalize_email(document.get("email") or doc_id) == canonical_key:
                return admin_from_document({**document, "email": canonical_key})
            raise OnboardValidationError(
                "A super admin already exists. Cannot initialize another one."
            )
        now = to_iso(self._clock())
        admin = AdminUser(
            email=canonical_key,
            role="super_admin",
            name=name or canonical_key.split("@")[0],
        )
        self._store.set(
            ADMINS_COLLECTION,
            canonical_key,
            {
                "email": canonical_key,
                "name": admin.name,
                "role": admin.role,
                "createdAt": now,
                "updatedAt": now,
            },
        )
        _LOGGER.info("super_admin_initialized", email=canonical_key)
        return admin

    def add_admin(
        self,
        actor: AdminUser | None,
        email: str,
        role: AdminRole,
        name: str | None = None,
        accessible_cities: Iterable[str] = (),
    ) -> AdminUser:
        """Create or update an admin within the actor's manageable roles.

        Raises:
            AuthError: If there is no actor.
            PermissionDeniedError: If the actor cannot manage the role.
            OnboardValidationError: If the email is malformed.
        """
        manager = require_permission(actor, "manage_admins")
        if role not in MANAGEABLE_ROLES[manager.role]:
            raise PermissionDeniedError(
                f"Admin role '{manager.role}' cannot manage '{role}' admins."
            )
        canonical_key = normalize_email(email)
        if not _EMAIL_PATTERN.match(canonical_key):
            raise OnboardValidationError(
                f"Invalid admin email '{email}'. Provide an address like name@example.com."
            )
        admin = AdminUser(
            email=canonical_key,
            role=role,
            name=name or canonical_key.split("@")[0],
            accessible_cities=tuple(accessible_cities),
        )
        now = to_iso(self._clock())
        existing = self._store.get(ADMINS_COLLECTION, canonical_key) or {}
        self._store.merge(
            ADMINS_COLLECTION,
            canonical_key,
            {
                "email": canonical_key,
                "name": admin.name,
                "role": role,
                "accessibleCities": list(admin.accessible_cities),
                "createdAt": existing.get("createdAt") or now,
                "updatedAt": now,
                "createdBy": manager.email,
            },
        )
        _LOGGER.info("admin_saved", email=canonical_key, role=role, actor=manager.email)
        return admin

    def update_application_status(
        self,
        actor: AdminUser | None,
        email: str,
        status: ApplicationStatus,
        notes: str = "",
    ) -> Document:
        """Set an applicant's review status on their DriverProfile.

        Returns:
            Merged DriverProfile.

        Raises:
            AuthError: If there is no actor.
            PermissionDeniedError: If the actor cannot update statuses.
            OnboardValidationError: If the status is unknown.
            NotFoundError: If the applicant has no DriverProfile.
        """
        reviewer = require_permission(actor, "update_status")
        parsed_status = parse_status(status)
        try:
            doc_id = self._resolver.document_key(self._store, DRIVERS_COLLECTION, email)
        except IdentityResolutionFailure as error:
            raise NotFoundError(
                f"No driver profile exists for {normalize_email(email)}. "
                "Only applicants who started onboarding can be reviewed."
            ) from error
        now = to_iso(self._clock())
        merged = self._store.merge(
            DRIVERS_COLLECTION,
            doc_id,
            {
                "status": parsed_status,
                "adminNotes": notes,
                "statusUpdatedAt": now,
                "statusUpdatedBy": reviewer.email,
                "updatedAt": now,
            },
        )
        _LOGGER.info(
            "application_status_updated",
            email=normalize_email(email),
            status=parsed_status,
            actor=reviewer.email,
        )
        return merged
