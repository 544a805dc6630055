import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.errors import NotFoundError, ValidationError, WriteError
from gifttracker.models.models import Profile

logger = logging.getLogger("gifttracker.db")


async def commit_or_raise(db: AsyncSession, action: str) -> None:
    """Commit the session; on failure roll back and surface the driver message as a WriteError."""
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Commit failed action=%s error=%s", action, exc)
        raise WriteError(f"Error {action}: {exc}") from exc


async def execute_and_commit(db: AsyncSession, action: str, *statements) -> None:
    """
    Run ``(statement, params)`` pairs and commit them as one write.

    ``params`` may be ``None`` or a list of row dicts for an executemany insert.
    Pending ORM changes are flushed first and land in the same commit.
    """
    try:
        await db.flush()
        for statement, params in statements:
            if params is None:
                await db.execute(statement)
            else:
                await db.execute(statement, params)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Write failed action=%s error=%s", action, exc)
        raise WriteError(f"Error {action}: {exc}") from exc


async def get_profile_or_404(db: AsyncSession, profile_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Profile not found", details={"profile_id": profile_id})
    return profile


async def ensure_profiles_exist(db: AsyncSession, profile_ids: Iterable[str | None], field: str) -> None:
    wanted = {pid for pid in profile_ids if pid}
    if not wanted:
        return
    result = await db.execute(select(Profile.id).where(Profile.id.in_(wanted)))
    found = {row[0] for row in result.all()}
    missing = sorted(wanted - found)
    if missing:
        raise ValidationError(
            f"Unknown profile id(s) for {field}: {', '.join(missing)}",
            details={"field": field, "missing": missing},
        )


async def profile_exists(db: AsyncSession, profile_id: str) -> bool:
    result = await db.execute(select(Profile.id).where(Profile.id == profile_id))
    return result.scalar_one_or_none() is not None
