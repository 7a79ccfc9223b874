"""Pydantic schemas for the EMS MDT API."""

from ems_mdt.schemas.access import (
    ActionLogOut,
    GradeCreate,
    GradeOut,
    IdentityOut,
    PermissionOut,
    RosterEntry,
    SuccessResponse,
    UserCreate,
    UserOut,
    UserUpdate,
)
from ems_mdt.schemas.diagnosis import AnalyzeRequest, AnalyzeResponse, DiagnosisResultOut, VitalsInput

__all__ = [
    # Diagnosis
    "AnalyzeRequest",
    "AnalyzeResponse",
    "DiagnosisResultOut",
    "VitalsInput",
    # Access
    "ActionLogOut",
    "GradeCreate",
    "GradeOut",
    "IdentityOut",
    "PermissionOut",
    "RosterEntry",
    "SuccessResponse",
    "UserCreate",
    "UserOut",
    "UserUpdate",
]
