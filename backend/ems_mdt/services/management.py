"""Grade and user management.

Every mutation is checked against the actor's hierarchy level before the
database is touched, then traced as an ``ActionLog`` row and an audit record.

Hierarchy rule: an actor may only create, edit, promote, demote or delete a
grade or user whose current or prospective level is strictly below its own.
A full-access actor (level 99) is exempt.
"""

import logging

import bcrypt
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ems_mdt.core.audit import AuditAction, log_audit
from ems_mdt.core.config import settings
from ems_mdt.core.errors import ConflictError, InvalidInputError, NotFoundError
from ems_mdt.models import ActionLog, Grade, User
from ems_mdt.schemas.access import (
    ActionLogOut,
    GradeCreate,
    RosterEntry,
    UserCreate,
    UserOut,
    UserUpdate,
)
from ems_mdt.services.permissions import EffectiveIdentity, ensure_can_manage_level

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


class ManagementService:
    """Grade and user administration bound to one database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _record(
        self,
        actor: EffectiveIdentity,
        action: AuditAction,
        resource_type: str,
        details: str,
        target_id: str | None,
    ) -> None:
        self.db.add(
            ActionLog(
                user_id=actor.user_id,
                action=action.value,
                details=details,
                target_id=target_id,
            )
        )
        log_audit(
            action=action,
            resource_type=resource_type,
            resource_id=target_id,
            user_id=actor.user_id,
            details=details,
        )

    async def _get_grade(self, grade_id: str) -> Grade:
        grade = await self.db.get(Grade, grade_id)
        if grade is None:
            raise NotFoundError(f"Grade introuvable: {grade_id}", details={"grade_id": grade_id})
        return grade

    async def _get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"Utilisateur introuvable: {user_id}", details={"user_id": user_id})
        return user

    async def _grade_level(self, grade_id: str | None) -> int:
        """Level of a prospective grade; no grade counts as level 0."""
        if grade_id is None:
            return 0
        return (await self._get_grade(grade_id)).level

    async def _ensure_grade_name_free(self, name: str, grade_id: str | None = None) -> None:
        query = select(Grade.id).where(Grade.name == name)
        if grade_id is not None:
            query = query.where(Grade.id != grade_id)
        if await self.db.scalar(query) is not None:
            raise ConflictError("Ce nom de grade existe déjà", details={"name": name})

    # ------------------------------------------------------------------
    # Grades
    # ------------------------------------------------------------------

    async def list_grades(self) -> list[Grade]:
        """All grades, highest level first."""
        result = await self.db.execute(select(Grade).order_by(Grade.level.desc()))
        return list(result.scalars().all())

    async def create_grade(self, actor: EffectiveIdentity, data: GradeCreate) -> Grade:
        ensure_can_manage_level(
            actor, data.level, "Impossible de créer un grade supérieur au vôtre."
        )
        await self._ensure_grade_name_free(data.name)

        grade = Grade(
            name=data.name,
            category=data.category,
            level=data.level,
            color=data.color,
            permissions=dict(data.permissions),
        )
        self.db.add(grade)
        await self.db.flush()

        await self._record(actor, AuditAction.CREATE_GRADE, "grade", f"Création du grade {grade.name}", grade.id)
        return grade

    async def update_grade(self, actor: EffectiveIdentity, grade_id: str, data: GradeCreate) -> Grade:
        grade = await self._get_grade(grade_id)
        ensure_can_manage_level(actor, grade.level)
        ensure_can_manage_level(actor, data.level)
        await self._ensure_grade_name_free(data.name, grade_id)

        grade.name = data.name
        grade.category = data.category
        grade.level = data.level
        grade.color = data.color
        grade.permissions = dict(data.permissions)
        await self.db.flush()

        await self._record(actor, AuditAction.UPDATE_GRADE, "grade", f"Modification du grade {grade.name}", grade.id)
        return grade

    async def delete_grade(self, actor: EffectiveIdentity, grade_id: str) -> None:
        grade = await self._get_grade(grade_id)
        ensure_can_manage_level(actor, grade.level)

        in_use = await self.db.scalar(
            select(func.count(User.id)).where(
                or_(User.grade_id == grade_id, User.visible_grade_id == grade_id)
            )
        )
        if in_use:
            raise ConflictError(
                "Impossible: Grade assigné à des utilisateurs",
                details={"grade_id": grade_id, "users": in_use},
            )

        await self.db.delete(grade)
        await self.db.flush()
        await self._record(actor, AuditAction.DELETE_GRADE, "grade", f"Suppression du grade {grade.name}", grade_id)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @staticmethod
    def to_user_out(user: User) -> UserOut:
        grade = user.grade
        return UserOut(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            badge_number=user.badge_number,
            grade_id=user.grade_id,
            visible_grade_id=user.visible_grade_id,
            is_active=user.is_active,
            grade_name=grade.name if grade is not None else None,
            grade_color=grade.color if grade is not None else None,
            grade_level=grade.level if grade is not None else None,
        )

    async def list_users(self) -> list[User]:
        """All users ordered by real grade level (highest first), then first name."""
        result = await self.db.execute(
            select(User)
            .outerjoin(Grade, User.grade_id == Grade.id)
            .order_by(Grade.level.desc().nulls_last(), User.first_name)
        )
        return list(result.scalars().all())

    async def create_user(self, actor: EffectiveIdentity, data: UserCreate) -> User:
        ensure_can_manage_level(
            actor,
            await self._grade_level(data.grade_id),
            "Impossible d'assigner un grade supérieur ou égal au vôtre.",
        )
        if data.visible_grade_id is not None:
            await self._get_grade(data.visible_grade_id)

        existing = await self.db.scalar(select(User.id).where(User.username == data.username))
        if existing is not None:
            raise ConflictError("Cet identifiant existe déjà", details={"username": data.username})

        user = User(
            username=data.username,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            badge_number=data.badge_number,
            grade_id=data.grade_id,
            visible_grade_id=data.visible_grade_id,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        await self._record(
            actor,
            AuditAction.CREATE_USER,
            "user",
            f"Création utilisateur {data.first_name} {data.last_name}",
            user.id,
        )
        return user

    async def update_user(self, actor: EffectiveIdentity, user_id: str, data: UserUpdate) -> User:
        user = await self._get_user(user_id)
        current_level = user.grade.level if user.grade is not None else 0
        ensure_can_manage_level(actor, current_level, "Vous ne pouvez pas modifier un supérieur.")
        ensure_can_manage_level(
            actor,
            await self._grade_level(data.grade_id),
            "Vous ne pouvez pas promouvoir quelqu'un au dessus de vous.",
        )
        if data.visible_grade_id is not None:
            await self._get_grade(data.visible_grade_id)

        if data.username != user.username:
            taken = await self.db.scalar(
                select(User.id).where(User.username == data.username, User.id != user_id)
            )
            if taken is not None:
                raise ConflictError("Cet identifiant existe déjà", details={"username": data.username})

        user.username = data.username
        user.first_name = data.first_name
        user.last_name = data.last_name
        user.badge_number = data.badge_number
        user.grade_id = data.grade_id
        user.visible_grade_id = data.visible_grade_id
        if data.password and data.password.strip():
            user.password_hash = hash_password(data.password)
        await self.db.flush()
        await self.db.refresh(user)

        await self._record(
            actor,
            AuditAction.UPDATE_USER,
            "user",
            f"Modif utilisateur {data.first_name} {data.last_name}",
            user.id,
        )
        return user

    async def delete_user(self, actor: EffectiveIdentity, user_id: str) -> None:
        if user_id == actor.user_id:
            raise InvalidInputError("Vous ne pouvez pas supprimer votre propre compte.")

        user = await self._get_user(user_id)
        target_level = user.grade.level if user.grade is not None else 0
        ensure_can_manage_level(actor, target_level, "Vous ne pouvez pas supprimer un supérieur.")

        await self.db.delete(user)
        await self.db.flush()
        await self._record(actor, AuditAction.DELETE_USER, "user", f"Suppression utilisateur ID {user_id}", user_id)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    async def roster(self) -> list[RosterEntry]:
        """Active users with their displayed grade, highest displayed level first."""
        result = await self.db.execute(select(User).where(User.is_active.is_(True)))
        entries: list[RosterEntry] = []
        for user in result.scalars().all():
            shown = user.visible_grade if user.visible_grade is not None else user.grade
            entries.append(
                RosterEntry(
                    id=user.id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    badge_number=user.badge_number,
                    phone=user.phone,
                    grade_name=shown.name if shown is not None else None,
                    grade_category=shown.category if shown is not None else None,
                    grade_level=shown.level if shown is not None else None,
                    grade_color=shown.color if shown is not None else None,
                )
            )
        entries.sort(key=lambda e: e.last_name)
        entries.sort(key=lambda e: e.grade_level if e.grade_level is not None else -1, reverse=True)
        return entries

    # ------------------------------------------------------------------
    # Action log
    # ------------------------------------------------------------------

    async def list_logs(self, limit: int = 100) -> list[ActionLogOut]:
        """Most recent action log entries with their actor, newest first."""
        result = await self.db.execute(
            select(ActionLog).order_by(ActionLog.created_at.desc()).limit(limit)
        )
        entries: list[ActionLogOut] = []
        for log in result.scalars().all():
            actor = log.user
            entries.append(
                ActionLogOut(
                    id=log.id,
                    created_at=log.created_at,
                    user_id=log.user_id,
                    action=log.action,
                    details=log.details,
                    target_id=log.target_id,
                    first_name=actor.first_name if actor is not None else None,
                    last_name=actor.last_name if actor is not None else None,
                    badge_number=actor.badge_number if actor is not None else None,
                )
            )
        return entries
