"""Identity loading for authenticated requests."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ems_mdt.models import User
from ems_mdt.services.permissions import EffectiveIdentity, resolve_user_identity

logger = logging.getLogger(__name__)


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


async def load_identity(db: AsyncSession, user_id: str | None) -> EffectiveIdentity | None:
    """Load an active user with both grades and resolve its identity.

    Returns None when the id is missing, malformed, unknown or inactive.
    """
    if not user_id or not _is_uuid(user_id):
        return None

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True))
    )
    user = result.scalars().first()
    if user is None:
        logger.info(f"No active user for id={user_id}")
        return None

    return resolve_user_identity(user, user.grade, user.visible_grade)
