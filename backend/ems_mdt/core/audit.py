"""Audit logging for grade and user management.

Every mutation performed through the management service is recorded twice:
as an ``ActionLog`` row (see ``ems_mdt.models.action_log``) and as a record
on the dedicated ``audit`` logger built here. Authorization denials are
audited too so that repeated escalation attempts are visible.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Separate audit logger for security-critical events
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Grades
    CREATE_GRADE = "CREATE_GRADE"
    UPDATE_GRADE = "UPDATE_GRADE"
    DELETE_GRADE = "DELETE_GRADE"

    # Users
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    # Authorization
    ACCESS_DENIED = "ACCESS_DENIED"


class AuditEvent(BaseModel):
    """Audit event record.

    Contains all relevant context for an auditable action.
    """

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource affected")
    resource_id: str | None = Field(None, description="ID of specific resource")
    user_id: str | None = Field(None, description="User who performed action")
    details: str | None = Field(None, description="Human-readable description")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    resource_type: str,
    resource_id: str | None = None,
    user_id: str | None = None,
    details: str | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        resource_type: The type of resource affected ("grade", "user")
        resource_id: Specific resource identifier
        user_id: User performing the action
        details: Human-readable description
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} {resource_type}"
        f"{f'/{resource_id}' if resource_id else ''}"
        f"{f' user={user_id}' if user_id else ''}"
        f" success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_access_denied(user_id: str | None, reason: str, resource_type: str = "route") -> AuditEvent:
    """Log a refused authorization decision."""
    return log_audit(
        action=AuditAction.ACCESS_DENIED,
        resource_type=resource_type,
        user_id=user_id,
        details=reason,
        success=False,
    )
