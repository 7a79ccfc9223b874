"""SQLAlchemy ORM models for the EMS MDT backend.

All models inherit from Base which provides:
- id: UUID primary key
- created_at: Timestamp

Models:
- Grade
- User
- ActionLog
"""

from ems_mdt.core.database import Base
from ems_mdt.models.action_log import ActionLog
from ems_mdt.models.grade import Grade
from ems_mdt.models.user import User

__all__ = [
    "Base",
    "ActionLog",
    "Grade",
    "User",
]
