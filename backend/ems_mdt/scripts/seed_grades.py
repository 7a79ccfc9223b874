"""Seed script for the default grade ladder.

Usage:
    python -m ems_mdt.scripts.seed_grades

Inserts the default grades when the table is empty, and makes sure the
full-access "Développeur" grade exists in every case.
"""

import asyncio
import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ems_mdt.core.database import async_session_maker, engine
from ems_mdt.models import Grade
from ems_mdt.services.permissions import FULL_ACCESS_LEVEL, PERMISSION_REGISTRY, Permission

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _flags(*permissions: Permission) -> dict[str, bool]:
    return {p.value: True for p in permissions}


BASIC_PERMISSIONS = _flags(
    Permission.ACCESS_DASHBOARD,
    Permission.VIEW_PATIENTS,
    Permission.CREATE_REPORTS,
)
MID_PERMISSIONS = BASIC_PERMISSIONS | _flags(
    Permission.CREATE_PATIENTS,
    Permission.MANAGE_APPOINTMENTS,
)
HIGH_PERMISSIONS = MID_PERMISSIONS | _flags(
    Permission.DELETE_PATIENTS,
    Permission.VIEW_ROSTER,
)
ALL_PERMISSIONS = {key: True for key in PERMISSION_REGISTRY}

DEFAULT_GRADES: list[dict[str, Any]] = [
    {"name": "Stagiaire", "category": "Paramedical", "level": 1, "color": "#64748b", "permissions": BASIC_PERMISSIONS},
    {"name": "Ambulancier EMT", "category": "Paramedical", "level": 2, "color": "#3b82f6", "permissions": BASIC_PERMISSIONS},
    {"name": "Ambulancier Paramedical", "category": "Paramedical", "level": 3, "color": "#3b82f6", "permissions": MID_PERMISSIONS},
    {"name": "Interne", "category": "Medecine", "level": 4, "color": "#991b1b", "permissions": MID_PERMISSIONS},
    {"name": "Medecin Junior", "category": "Medecine", "level": 5, "color": "#991b1b", "permissions": HIGH_PERMISSIONS},
    {"name": "Medecin Senior", "category": "Medecine", "level": 6, "color": "#991b1b", "permissions": HIGH_PERMISSIONS},
    {"name": "Chef des Consultations", "category": "Chef de service", "level": 7, "color": "#14532d", "permissions": HIGH_PERMISSIONS},
    {"name": "Chef des Urgences", "category": "Chef de service", "level": 8, "color": "#14532d", "permissions": HIGH_PERMISSIONS},
    {"name": "Directeur Adjoint", "category": "Direction M.R.S.A", "level": 9, "color": "#1e3a5f", "permissions": ALL_PERMISSIONS},
    {"name": "Directeur MRSA", "category": "Direction M.R.S.A", "level": 10, "color": "#1e3a5f", "permissions": ALL_PERMISSIONS},
]

DEVELOPER_GRADE: dict[str, Any] = {
    "name": "Développeur",
    "category": "Système",
    "level": FULL_ACCESS_LEVEL,
    "color": "#8b5cf6",
    "permissions": ALL_PERMISSIONS,
}


async def seed_default_grades(session: AsyncSession) -> int:
    """Insert the default ladder if no grade exists yet. Returns rows added."""
    count = await session.scalar(select(func.count(Grade.id)))
    if count:
        logger.info(f"Grades already present ({count}), skipping default ladder")
        return 0

    for data in DEFAULT_GRADES:
        session.add(Grade(**data))
    logger.info(f"Inserted {len(DEFAULT_GRADES)} default grades")
    return len(DEFAULT_GRADES)


async def ensure_developer_grade(session: AsyncSession) -> bool:
    """Create the full-access grade if missing. Returns True if created."""
    existing = await session.scalar(select(Grade.id).where(Grade.name == DEVELOPER_GRADE["name"]))
    if existing is not None:
        return False

    session.add(Grade(**DEVELOPER_GRADE))
    logger.info("Created full-access grade")
    return True


async def main() -> None:
    """Seed grades into the configured database."""
    async with async_session_maker() as session:
        await seed_default_grades(session)
        await ensure_developer_grade(session)
        await session.commit()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
