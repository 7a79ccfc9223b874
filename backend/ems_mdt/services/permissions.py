"""Authorization resolution.

A user carries two grades:
- the real grade (``grade_id``), which alone decides what the user may do;
- an optional visible grade (``visible_grade_id``), which only changes how
  the user is displayed to others.

``resolve_user_identity`` is the single place where the two are joined. All
predicates below take the resulting ``EffectiveIdentity`` and never look at
the visible grade.

Level 99 is the full-access grade. It is modelled as a distinct
``AccessLevel`` kind rather than a number so that hierarchy comparisons
cannot accidentally rank something above it.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ems_mdt.core.audit import log_access_denied
from ems_mdt.core.errors import ForbiddenError, UnauthenticatedError

logger = logging.getLogger(__name__)

# Grade level granting unconditional access
FULL_ACCESS_LEVEL = 99

# Minimum grade level considered administrator
ADMIN_GRADE_LEVEL = 10


class Permission(str, Enum):
    """Canonical permission keys stored in ``Grade.permissions``."""

    ACCESS_DASHBOARD = "access_dashboard"

    VIEW_PATIENTS = "view_patients"
    CREATE_PATIENTS = "create_patients"
    DELETE_PATIENTS = "delete_patients"

    CREATE_REPORTS = "create_reports"
    DELETE_REPORTS = "delete_reports"

    MANAGE_APPOINTMENTS = "manage_appointments"
    DELETE_APPOINTMENTS = "delete_appointments"

    VIEW_ROSTER = "view_roster"

    MANAGE_USERS = "manage_users"
    DELETE_USERS = "delete_users"
    MANAGE_GRADES = "manage_grades"
    VIEW_LOGS = "view_logs"


@dataclass(frozen=True)
class PermissionInfo:
    """Display metadata for a permission key."""

    key: str
    label: str
    category: str


# Registry of known keys. New permissions are added here; grades may still
# carry keys that are not registered, they are simply never listed.
PERMISSION_REGISTRY: dict[str, PermissionInfo] = {
    info.key: info
    for info in (
        PermissionInfo(Permission.ACCESS_DASHBOARD.value, "Accès MDT", "base"),
        PermissionInfo(Permission.VIEW_PATIENTS.value, "Voir Patients", "patients"),
        PermissionInfo(Permission.CREATE_PATIENTS.value, "Créer/Modif Patients", "patients"),
        PermissionInfo(Permission.DELETE_PATIENTS.value, "Supprimer Patients", "patients"),
        PermissionInfo(Permission.CREATE_REPORTS.value, "Créer Rapports", "reports"),
        PermissionInfo(Permission.DELETE_REPORTS.value, "Supprimer Rapports", "reports"),
        PermissionInfo(Permission.MANAGE_APPOINTMENTS.value, "Gérer RDV", "appointments"),
        PermissionInfo(Permission.DELETE_APPOINTMENTS.value, "Supprimer RDV", "appointments"),
        PermissionInfo(Permission.VIEW_ROSTER.value, "Voir Effectifs", "roster"),
        PermissionInfo(Permission.MANAGE_USERS.value, "Gérer Utilisateurs", "admin"),
        PermissionInfo(Permission.DELETE_USERS.value, "Supprimer Utilisateurs", "admin"),
        PermissionInfo(Permission.MANAGE_GRADES.value, "Gérer Grades", "admin"),
        PermissionInfo(Permission.VIEW_LOGS.value, "Voir Logs/Stats", "admin"),
    )
}

# Permissions that open the administration panel
ADMIN_PANEL_PERMISSIONS: tuple[Permission, ...] = (
    Permission.MANAGE_USERS,
    Permission.DELETE_USERS,
    Permission.MANAGE_GRADES,
    Permission.VIEW_LOGS,
)


def _key(permission: "Permission | str") -> str:
    return permission.value if isinstance(permission, Permission) else permission


@dataclass(frozen=True)
class AccessLevel:
    """Authorization level: either a standard numeric level or full access."""

    value: int
    is_full_access: bool = False

    def __post_init__(self) -> None:
        if self.value == FULL_ACCESS_LEVEL and not self.is_full_access:
            raise ValueError(f"Level {FULL_ACCESS_LEVEL} is reserved for full access")

    @classmethod
    def standard(cls, level: int) -> "AccessLevel":
        return cls(value=level, is_full_access=False)

    @classmethod
    def full_access(cls) -> "AccessLevel":
        return cls(value=FULL_ACCESS_LEVEL, is_full_access=True)

    @classmethod
    def from_level(cls, level: int | None) -> "AccessLevel":
        """Build from a stored grade level; missing grade means level 0."""
        if level == FULL_ACCESS_LEVEL:
            return cls.full_access()
        return cls.standard(level or 0)

    def can_manage(self, target_level: int | None) -> bool:
        """Whether an actor at this level may act on a grade at target_level.

        Full access manages every level, including other full-access grades.
        Any other actor only manages levels strictly below its own, and never
        a full-access grade whatever its own number.
        """
        if self.is_full_access:
            return True
        target = target_level or 0
        if target == FULL_ACCESS_LEVEL:
            return False
        return target < self.value


class GradeLike(Protocol):
    """Fields read from a grade row."""

    name: str
    level: int
    color: str
    permissions: dict[str, Any]


class UserLike(Protocol):
    """Fields read from a user row."""

    id: str
    username: str
    first_name: str
    last_name: str
    badge_number: str | None
    is_admin: bool


@dataclass(frozen=True)
class EffectiveIdentity:
    """Resolved identity of one authenticated user for one request."""

    user_id: str
    username: str
    first_name: str = ""
    last_name: str = ""
    badge_number: str | None = None
    is_admin: bool = False
    display_name: str | None = None
    display_color: str | None = None
    access_level: AccessLevel = field(default_factory=lambda: AccessLevel.standard(0))
    permissions: Mapping[str, Any] = field(default_factory=dict)

    @property
    def level(self) -> int:
        return self.access_level.value


def resolve_user_identity(
    user: UserLike,
    real_grade: GradeLike | None,
    visible_grade: GradeLike | None = None,
) -> EffectiveIdentity:
    """Join a user with its real and visible grades.

    Display name and color come from the visible grade when there is one.
    Level and permissions always come from the real grade.
    """
    display_source = visible_grade if visible_grade is not None else real_grade
    return EffectiveIdentity(
        user_id=str(user.id),
        username=user.username,
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        badge_number=user.badge_number,
        is_admin=bool(user.is_admin),
        display_name=display_source.name if display_source is not None else None,
        display_color=display_source.color if display_source is not None else None,
        access_level=AccessLevel.from_level(real_grade.level if real_grade is not None else None),
        permissions=dict(real_grade.permissions or {}) if real_grade is not None else {},
    )


# ============================================================================
# Predicates
# ============================================================================


def is_authenticated(identity: EffectiveIdentity | None) -> bool:
    return identity is not None


def is_admin(identity: EffectiveIdentity | None) -> bool:
    """Full access, the admin flag, or a grade level of 10 or more."""
    if identity is None:
        return False
    if identity.access_level.is_full_access:
        return True
    return identity.is_admin or identity.level >= ADMIN_GRADE_LEVEL


def has_permission(identity: EffectiveIdentity | None, permission: Permission | str) -> bool:
    """Full access, the admin flag, or the key explicitly set to True.

    Unknown keys are simply absent and evaluate False.
    """
    if identity is None:
        return False
    if identity.access_level.is_full_access:
        return True
    if identity.is_admin:
        return True
    return identity.permissions.get(_key(permission)) is True


def has_any_permission(identity: EffectiveIdentity | None, permissions: Iterable[Permission | str]) -> bool:
    if identity is None:
        return False
    return any(has_permission(identity, p) for p in permissions)


def has_all_permissions(identity: EffectiveIdentity | None, permissions: Iterable[Permission | str]) -> bool:
    if identity is None:
        return False
    return all(has_permission(identity, p) for p in permissions)


def can_access_admin_panel(identity: EffectiveIdentity | None) -> bool:
    """Admins, or anyone holding at least one administration permission."""
    if identity is None:
        return False
    return is_admin(identity) or has_any_permission(identity, ADMIN_PANEL_PERMISSIONS)


def get_admin_permissions(identity: EffectiveIdentity | None) -> list[str]:
    """Administration permissions the identity holds, in registry order."""
    if identity is None:
        return []
    if is_admin(identity):
        return [p.value for p in ADMIN_PANEL_PERMISSIONS]
    return [p.value for p in ADMIN_PANEL_PERMISSIONS if has_permission(identity, p)]


# ============================================================================
# Enforcement
# ============================================================================


def ensure_authenticated(identity: EffectiveIdentity | None) -> EffectiveIdentity:
    """Return the identity or raise UnauthenticatedError."""
    if identity is None:
        raise UnauthenticatedError()
    return identity


def ensure_admin(identity: EffectiveIdentity | None) -> EffectiveIdentity:
    """Raise unless the identity is an administrator."""
    identity = ensure_authenticated(identity)
    if not is_admin(identity):
        reason = "Accès refusé: Admin requis"
        log_access_denied(identity.user_id, reason)
        raise ForbiddenError(reason)
    return identity


def ensure_permission(identity: EffectiveIdentity | None, permission: Permission | str) -> EffectiveIdentity:
    """Raise unless the identity holds the permission."""
    identity = ensure_authenticated(identity)
    if not has_permission(identity, permission):
        reason = f"Permission manquante: {_key(permission)}"
        log_access_denied(identity.user_id, reason)
        raise ForbiddenError(reason, details={"permission": _key(permission)})
    return identity


def ensure_can_manage_level(
    identity: EffectiveIdentity,
    target_level: int | None,
    message: str = "Vous ne pouvez pas gérer un grade supérieur ou égal au vôtre.",
) -> None:
    """Raise unless the actor outranks target_level (full access always does)."""
    if not identity.access_level.can_manage(target_level):
        logger.warning(
            f"Hierarchy violation: user={identity.user_id} level={identity.level} "
            f"target_level={target_level}"
        )
        log_access_denied(identity.user_id, message, resource_type="hierarchy")
        raise ForbiddenError(
            message,
            details={"actor_level": identity.level, "target_level": target_level},
        )
