"""Grade, user and identity schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ems_mdt.models.grade import DEFAULT_GRADE_COLOR


class GradeCreate(BaseModel):
    """Schema for creating or replacing a grade."""

    name: str = Field(..., min_length=1, max_length=100, description="Grade name")
    category: str | None = Field(None, description="Grade category (Paramedical, Medecine, ...)")
    level: int = Field(1, ge=0, description="Hierarchy level; 99 grants full access")
    color: str = Field(DEFAULT_GRADE_COLOR, description="Display color")
    permissions: dict[str, bool] = Field(default_factory=dict, description="Permission flags")


class GradeOut(BaseModel):
    """Schema for a grade."""

    id: str = Field(..., description="Grade identifier")
    name: str
    category: str | None = None
    level: int
    color: str
    permissions: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    return value


def _grade_reference(value: str | None) -> str | None:
    """Blank means no grade; anything else must be a grade UUID."""
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return str(UUID(str(value)))
    except ValueError:
        raise ValueError("grade id must be a UUID") from None


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    badge_number: str | None = Field(None, max_length=50)
    grade_id: str | None = Field(None, description="Real grade (authorization)")
    visible_grade_id: str | None = Field(None, description="Displayed grade (cosmetic)")

    @field_validator("grade_id", "visible_grade_id", mode="before")
    @classmethod
    def check_grade_reference(cls, value: str | None) -> str | None:
        return _grade_reference(value)


class UserCreate(UserBase):
    """Schema for creating a user."""

    password: str = Field(..., min_length=1, description="Initial password")


class UserUpdate(UserBase):
    """Schema for updating a user. A blank password keeps the current one."""

    password: str | None = Field(None, description="New password")


class UserOut(BaseModel):
    """Admin view of a user, with the real grade."""

    id: str
    username: str
    first_name: str
    last_name: str
    badge_number: str | None = None
    grade_id: str | None = None
    visible_grade_id: str | None = None
    is_active: bool = True
    grade_name: str | None = None
    grade_color: str | None = None
    grade_level: int | None = None


class ActionLogOut(BaseModel):
    """One action log entry with its actor."""

    id: str
    created_at: datetime
    user_id: str | None = None
    action: str
    details: str | None = None
    target_id: str | None = None
    first_name: str | None = Field(None, description="Actor first name")
    last_name: str | None = Field(None, description="Actor last name")
    badge_number: str | None = Field(None, description="Actor badge number")


class RosterEntry(BaseModel):
    """Roster view of a user, with the displayed grade."""

    id: str
    first_name: str
    last_name: str
    badge_number: str | None = None
    phone: str | None = None
    grade_name: str | None = None
    grade_category: str | None = None
    grade_level: int | None = None
    grade_color: str | None = None


class IdentityOut(BaseModel):
    """The caller's effective identity."""

    id: str
    username: str
    first_name: str
    last_name: str
    badge_number: str | None = None
    is_admin: bool
    grade_name: str | None = Field(None, description="Displayed grade name")
    grade_color: str | None = Field(None, description="Displayed grade color")
    grade_level: int = Field(..., description="Real grade level")
    grade_permissions: dict[str, Any] = Field(default_factory=dict)
    full_access: bool = False
    can_access_admin_panel: bool = False
    admin_permissions: list[str] = Field(default_factory=list)


class PermissionOut(BaseModel):
    """A registered permission key."""

    key: str
    label: str
    category: str


class SuccessResponse(BaseModel):
    success: bool = True
