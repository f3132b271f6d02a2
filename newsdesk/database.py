from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from newsdesk.config import settings
from newsdesk.middleware import install_query_counter

# Tests replace ``engine`` and ``async_session`` with an in-memory SQLite pair.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)
install_query_counter(engine)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    One unit of work: commit when the block exits normally, roll back and
    re-raise otherwise.  Services only flush; this is the only place that
    commits.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: the request handler runs inside one ``session_scope``."""
    async with session_scope() as session:
        yield session
