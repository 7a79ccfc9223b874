"""Administration endpoints for grades and users.

Grade and user routes require an administrator. Deleting a user additionally
requires the ``delete_users`` permission, and reading the action log requires
``view_logs``. The hierarchy rule is applied by ``ManagementService``.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ems_mdt.core.security import DbSession, RequireAdmin, require_permission
from ems_mdt.schemas.access import (
    ActionLogOut,
    GradeCreate,
    GradeOut,
    SuccessResponse,
    UserCreate,
    UserOut,
    UserUpdate,
)
from ems_mdt.services.management import ManagementService
from ems_mdt.services.permissions import EffectiveIdentity, Permission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Administration"])


# ============================================================================
# Grades
# ============================================================================


@router.get("/grades", response_model=list[GradeOut], summary="List grades")
async def list_grades(identity: RequireAdmin, db: DbSession) -> list[GradeOut]:
    grades = await ManagementService(db).list_grades()
    return [GradeOut.model_validate(g) for g in grades]


@router.post(
    "/grades",
    response_model=GradeOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create grade",
)
async def create_grade(data: GradeCreate, identity: RequireAdmin, db: DbSession) -> GradeOut:
    grade = await ManagementService(db).create_grade(identity, data)
    return GradeOut.model_validate(grade)


@router.put("/grades/{grade_id}", response_model=GradeOut, summary="Update grade")
async def update_grade(grade_id: UUID, data: GradeCreate, identity: RequireAdmin, db: DbSession) -> GradeOut:
    grade = await ManagementService(db).update_grade(identity, str(grade_id), data)
    return GradeOut.model_validate(grade)


@router.delete("/grades/{grade_id}", response_model=SuccessResponse, summary="Delete grade")
async def delete_grade(grade_id: UUID, identity: RequireAdmin, db: DbSession) -> SuccessResponse:
    await ManagementService(db).delete_grade(identity, str(grade_id))
    return SuccessResponse()


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=list[UserOut], summary="List users")
async def list_users(identity: RequireAdmin, db: DbSession) -> list[UserOut]:
    users = await ManagementService(db).list_users()
    return [ManagementService.to_user_out(u) for u in users]


@router.post(
    "/users",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(data: UserCreate, identity: RequireAdmin, db: DbSession) -> UserOut:
    user = await ManagementService(db).create_user(identity, data)
    return ManagementService.to_user_out(user)


@router.put("/users/{user_id}", response_model=UserOut, summary="Update user")
async def update_user(user_id: UUID, data: UserUpdate, identity: RequireAdmin, db: DbSession) -> UserOut:
    user = await ManagementService(db).update_user(identity, str(user_id), data)
    return ManagementService.to_user_out(user)


@router.delete("/users/{user_id}", response_model=SuccessResponse, summary="Delete user")
async def delete_user(
    user_id: UUID,
    identity: Annotated[EffectiveIdentity, Depends(require_permission(Permission.DELETE_USERS))],
    db: DbSession,
) -> SuccessResponse:
    await ManagementService(db).delete_user(identity, str(user_id))
    return SuccessResponse()


# ============================================================================
# Action log
# ============================================================================


@router.get("/logs", response_model=list[ActionLogOut], summary="List action log")
async def list_logs(
    identity: Annotated[EffectiveIdentity, Depends(require_permission(Permission.VIEW_LOGS))],
    db: DbSession,
    limit: int = Query(100, ge=1, le=1000, description="Maximum entries returned"),
) -> list[ActionLogOut]:
    """Most recent management actions with the acting user, newest first."""
    return await ManagementService(db).list_logs(limit)
