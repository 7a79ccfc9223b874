"""SQLAlchemy model for ActionLog."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ems_mdt.core.database import Base
from ems_mdt.models.user import User


class ActionLog(Base):
    """Persisted trace of one management action."""

    __tablename__ = "action_logs"

    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    details: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    target_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    # Actor; None once the user has been deleted
    user: Mapped[User | None] = relationship(
        User,
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<ActionLog(id={self.id}, action={self.action}, user_id={self.user_id})>"
