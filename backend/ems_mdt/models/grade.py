"""SQLAlchemy model for Grade."""

from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from ems_mdt.core.database import Base

DEFAULT_GRADE_COLOR = "#4a90a4"


class Grade(Base):
    """A rank carrying a permission level and granular permission flags.

    ``permissions`` is an open JSON object mapping permission keys to
    booleans; adding a permission never requires a schema change.
    Level 99 is the full-access grade.
    """

    __tablename__ = "grades"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )
    category: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        index=True,
    )
    color: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DEFAULT_GRADE_COLOR,
    )
    permissions: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return f"<Grade(id={self.id}, name={self.name}, level={self.level})>"
