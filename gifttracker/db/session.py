import asyncio
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from gifttracker.core.config import settings


class Base(DeclarativeBase):
    pass


def _engine_options(dsn: str) -> dict:
    options: dict = {"pool_pre_ping": True}
    if dsn.lower().startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_timeout=settings.db_pool_timeout,
        )
    return options


engine = create_async_engine(settings.database_dsn, **_engine_options(settings.database_dsn))
async_session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

_schema_lock = asyncio.Lock()
_schema_created = False


async def ensure_schema_ready() -> None:
    """Create the household tables on first use when migrations were not run."""
    global _schema_created
    async with _schema_lock:
        if _schema_created:
            return
        from gifttracker.models import models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        _schema_created = True


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    await ensure_schema_ready()
    async with async_session_factory() as session:
        yield session
