"""Tests for the request-scoped session dependency."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ems_mdt.core import database
from ems_mdt.core.database import Base, get_db


def fake_session_maker() -> tuple[MagicMock, MagicMock]:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context), session


class TestGetDb:
    """get_db commits on success and rolls back on error."""

    @pytest.mark.asyncio
    async def test_commits_after_request(self) -> None:
        maker, session = fake_session_maker()
        with patch.object(database, "async_session_maker", maker):
            gen = get_db()
            assert await gen.__anext__() is session
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self) -> None:
        maker, session = fake_session_maker()
        with patch.object(database, "async_session_maker", maker):
            gen = get_db()
            await gen.__anext__()
            with pytest.raises(RuntimeError):
                await gen.athrow(RuntimeError("rejected"))

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestBase:
    """Every table gets a UUID id and created_at."""

    def test_tables_registered(self) -> None:
        import ems_mdt.models  # noqa: F401

        assert {"grades", "users", "action_logs"} <= set(Base.metadata.tables)
        for table in Base.metadata.tables.values():
            assert "id" in table.c
            assert "created_at" in table.c
