"""SQLAlchemy model for User."""

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ems_mdt.core.database import Base
from ems_mdt.models.grade import Grade


class User(Base):
    """Staff account.

    ``grade_id`` is the real grade and the only source of authorization.
    ``visible_grade_id`` optionally overrides how the user is displayed.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    badge_number: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )
    grade_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("grades.id"),
        nullable=True,
        index=True,
    )
    visible_grade_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("grades.id"),
        nullable=True,
    )

    grade: Mapped[Grade | None] = relationship(
        Grade,
        foreign_keys=[grade_id],
        lazy="joined",
    )
    visible_grade: Mapped[Grade | None] = relationship(
        Grade,
        foreign_keys=[visible_grade_id],
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, grade_id={self.grade_id})>"
