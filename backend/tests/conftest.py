"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from ems_mdt.core.database import get_db
from ems_mdt.core.security import get_current_identity
from ems_mdt.main import app
from ems_mdt.models import Grade, User
from ems_mdt.services.permissions import AccessLevel, EffectiveIdentity


def make_identity(
    level: int,
    permissions: dict[str, Any] | None = None,
    is_admin: bool = False,
    user_id: str | None = None,
    display_name: str | None = None,
) -> EffectiveIdentity:
    """Build a resolved identity without touching the database."""
    return EffectiveIdentity(
        user_id=user_id or str(uuid4()),
        username=f"user-{level}",
        first_name="Test",
        last_name=f"Level{level}",
        badge_number=f"B-{level}",
        is_admin=is_admin,
        display_name=display_name or f"Grade {level}",
        display_color="#000000",
        access_level=AccessLevel.from_level(level),
        permissions=permissions or {},
    )


def make_grade(name: str, level: int, permissions: dict[str, Any] | None = None, **kwargs: Any) -> Grade:
    """Build a transient Grade row with an id."""
    return Grade(
        id=kwargs.pop("id", str(uuid4())),
        name=name,
        category=kwargs.pop("category", "Test"),
        level=level,
        color=kwargs.pop("color", "#123456"),
        permissions=permissions or {},
        **kwargs,
    )


def make_user(
    username: str,
    grade: Grade | None = None,
    visible_grade: Grade | None = None,
    **kwargs: Any,
) -> User:
    """Build a transient User row with its grades attached."""
    return User(
        id=kwargs.pop("id", str(uuid4())),
        username=username,
        password_hash=kwargs.pop("password_hash", "x"),
        first_name=kwargs.pop("first_name", "Jean"),
        last_name=kwargs.pop("last_name", "Dupont"),
        badge_number=kwargs.pop("badge_number", None),
        phone=kwargs.pop("phone", None),
        is_admin=kwargs.pop("is_admin", False),
        is_active=kwargs.pop("is_active", True),
        grade_id=grade.id if grade is not None else None,
        visible_grade_id=visible_grade.id if visible_grade is not None else None,
        grade=grade,
        visible_grade=visible_grade,
        **kwargs,
    )


@pytest.fixture
def mock_db_session() -> MagicMock:
    """Create a mock database session.

    Returns a mock AsyncSession that can be used in place of a real database.
    """
    session = MagicMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock(return_value=None)
    session.get = AsyncMock(return_value=None)
    return session


@pytest.fixture
def developer() -> EffectiveIdentity:
    """Full-access identity with an empty permission map."""
    return make_identity(99)


@pytest.fixture
def director() -> EffectiveIdentity:
    """Level 10 administrator."""
    return make_identity(10, {"manage_users": True, "delete_users": True, "manage_grades": True})


@pytest.fixture
def senior_medic() -> EffectiveIdentity:
    """Level 6, not an administrator."""
    return make_identity(
        6,
        {"access_dashboard": True, "view_patients": True, "view_roster": True},
    )


@pytest.fixture
def trainee() -> EffectiveIdentity:
    """Level 1 with basic permissions."""
    return make_identity(1, {"access_dashboard": True, "view_patients": True})


@pytest.fixture
def client_factory(
    mock_db_session: MagicMock,
) -> Callable[[EffectiveIdentity | None], Any]:
    """Build async test clients acting as a given identity.

    Database access is replaced by ``mock_db_session`` and identity
    resolution by the identity passed in (None means unauthenticated).
    """

    @asynccontextmanager
    async def factory(identity: EffectiveIdentity | None) -> AsyncGenerator[AsyncClient, None]:
        async def override_get_db():
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_identity] = lambda: identity
        try:
            async with AsyncClient(
                transport=ASGITransport(app=app),
                base_url="http://test",
            ) as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    return factory


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client without any override.

    Use this for endpoints that don't require database access.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
