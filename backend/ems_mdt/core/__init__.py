"""Core application configuration and utilities."""

from ems_mdt.core.audit import AuditAction, AuditEvent, log_access_denied, log_audit
from ems_mdt.core.config import settings
from ems_mdt.core.database import Base, get_db
from ems_mdt.core.errors import (
    CatalogError,
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    MDTError,
    NotFoundError,
    UnauthenticatedError,
)

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "get_db",
    # Errors
    "CatalogError",
    "ConflictError",
    "ForbiddenError",
    "InvalidInputError",
    "MDTError",
    "NotFoundError",
    "UnauthenticatedError",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_access_denied",
    "log_audit",
]
