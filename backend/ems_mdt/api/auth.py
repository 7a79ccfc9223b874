"""Identity and permission catalog endpoints."""

from fastapi import APIRouter

from ems_mdt.core.security import RequireAuth
from ems_mdt.schemas.access import IdentityOut, PermissionOut
from ems_mdt.services.permissions import (
    PERMISSION_REGISTRY,
    can_access_admin_panel,
    get_admin_permissions,
    is_admin,
)

router = APIRouter(tags=["Auth"])


@router.get("/auth/me", response_model=IdentityOut, summary="Current identity")
def get_me(identity: RequireAuth) -> IdentityOut:
    """Return the caller's displayed grade and real permissions."""
    return IdentityOut(
        id=identity.user_id,
        username=identity.username,
        first_name=identity.first_name,
        last_name=identity.last_name,
        badge_number=identity.badge_number,
        is_admin=is_admin(identity),
        grade_name=identity.display_name,
        grade_color=identity.display_color,
        grade_level=identity.level,
        grade_permissions=dict(identity.permissions),
        full_access=identity.access_level.is_full_access,
        can_access_admin_panel=can_access_admin_panel(identity),
        admin_permissions=get_admin_permissions(identity),
    )


@router.get("/permissions", response_model=list[PermissionOut], summary="List permission keys")
def list_permissions(identity: RequireAuth) -> list[PermissionOut]:
    return [
        PermissionOut(key=info.key, label=info.label, category=info.category)
        for info in PERMISSION_REGISTRY.values()
    ]
