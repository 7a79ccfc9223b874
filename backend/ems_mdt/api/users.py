"""Staff roster endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ems_mdt.core.security import DbSession, require_permission
from ems_mdt.schemas.access import RosterEntry
from ems_mdt.services.management import ManagementService
from ems_mdt.services.permissions import EffectiveIdentity, Permission

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/roster", response_model=list[RosterEntry], summary="Staff roster")
async def get_roster(
    identity: Annotated[EffectiveIdentity, Depends(require_permission(Permission.VIEW_ROSTER))],
    db: DbSession,
) -> list[RosterEntry]:
    """Active staff with their displayed grades."""
    return await ManagementService(db).roster()
