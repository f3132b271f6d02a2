"""
Test infrastructure for the Newsdesk API.

Strategy
--------
- SQLite in-memory via aiosqlite keeps the suite self-contained; no
  Postgres instance is needed in CI.
- StaticPool makes every session share the single in-memory connection
  (an in-memory SQLite database is connection-scoped).
- The driver's own transaction handling is switched off and BEGIN is
  emitted by SQLAlchemy instead, so the SAVEPOINTs used by the moderation
  helpers behave as they do on Postgres.  Foreign keys are enforced.
- ``get_db`` is overridden so HTTP requests use the test session factory.
- Tables are created before each test and dropped after it.
"""

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from newsdesk.database import Base, get_db
from newsdesk.main import app
from newsdesk.middleware import install_query_counter
from newsdesk.models import Article, ArticleStatus, User

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine_test.sync_engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(engine_test.sync_engine, "begin")
def _on_begin(conn):
    conn.exec_driver_sql("BEGIN")


install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for service-level tests."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def article(db_session: AsyncSession) -> Article:
    """A published article (with its author) flushed into ``db_session``."""
    author = User(username="editor", email="editor@newsdesk.example", display_name="Editor")
    db_session.add(author)
    await db_session.flush()

    article = Article(
        title="Moderated Article",
        slug="moderated-article",
        content="Body",
        status=ArticleStatus.PUBLISHED,
        user_id=author.id,
    )
    db_session.add(article)
    await db_session.flush()
    return article
