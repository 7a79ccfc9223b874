"""API routers for the EMS MDT backend."""

from ems_mdt.api.admin import router as admin_router
from ems_mdt.api.auth import router as auth_router
from ems_mdt.api.diagnosis import router as diagnosis_router
from ems_mdt.api.users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "diagnosis_router",
    "users_router",
]
