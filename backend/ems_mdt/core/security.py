"""Route guards built on the authorization model."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ems_mdt.core.config import settings
from ems_mdt.core.database import get_db
from ems_mdt.services.identity import load_identity
from ems_mdt.services.permissions import (
    EffectiveIdentity,
    Permission,
    ensure_admin,
    ensure_authenticated,
    ensure_permission,
)

logger = logging.getLogger(__name__)

# The upstream authentication layer forwards the authenticated user id here
identity_header = APIKeyHeader(
    name=settings.identity_header,
    auto_error=False,  # Missing identity is handled by the guards
)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_identity(
    user_id: Annotated[str | None, Security(identity_header)],
    db: DbSession,
) -> EffectiveIdentity | None:
    """Resolve the request's identity, or None when there is none."""
    return await load_identity(db, user_id)


OptionalIdentity = Annotated[EffectiveIdentity | None, Depends(get_current_identity)]


def require_authenticated(identity: OptionalIdentity) -> EffectiveIdentity:
    """Guard: any authenticated user (401 otherwise)."""
    return ensure_authenticated(identity)


def require_admin(identity: OptionalIdentity) -> EffectiveIdentity:
    """Guard: administrators only (401 / 403)."""
    return ensure_admin(identity)


def require_permission(permission: Permission | str) -> Callable[[EffectiveIdentity | None], EffectiveIdentity]:
    """Build a guard requiring one permission key.

    Usage:
        @router.get("/roster")
        async def roster(identity: Annotated[EffectiveIdentity, Depends(require_permission(Permission.VIEW_ROSTER))]):
            ...
    """

    def guard(identity: OptionalIdentity) -> EffectiveIdentity:
        return ensure_permission(identity, permission)

    return guard


# Dependencies for protected endpoints
RequireAuth = Annotated[EffectiveIdentity, Depends(require_authenticated)]
RequireAdmin = Annotated[EffectiveIdentity, Depends(require_admin)]
