import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from blog.config import settings

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Per-request unit of work.

    Committed when the handler returns normally, rolled back when it
    raises; the session is closed on every exit path by ``async with``.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ensure_roles(session: AsyncSession, role_names: list[str]) -> list[str]:
    """Insert any role in *role_names* that does not exist yet; return the created names."""
    from blog.models import Role

    result = await session.execute(select(Role.name))
    existing = set(result.scalars().all())
    created = [name for name in role_names if name not in existing]
    for name in created:
        session.add(Role(name=name))
    await session.flush()
    return created


async def init_db() -> None:
    """Create all tables and the configured roles.  Called from the app lifespan."""
    import blog.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        created = await ensure_roles(session, settings.ROLES)
        await session.commit()
    if created:
        logger.info("Created roles: %s", ", ".join(created))
