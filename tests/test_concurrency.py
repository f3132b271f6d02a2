"""
Concurrency tests: several sessions working on one article at once.

The shared in-memory database of ``conftest.py`` funnels every session
through a single connection, so these tests build their own file-backed
SQLite database in ``tmp_path``.  Each task gets its own session and
connection and commits its own unit of work, the way concurrent requests
do through ``get_db``.

SQLite serialises writers with a database lock; the connection timeout
lets a blocked writer wait for the lock instead of failing.
"""
import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from newsdesk.database import Base
from newsdesk.models import Article, ArticleStatus, Comment, CommentStatus, User
from newsdesk.services import article_service, moderation


# ---------------------------------------------------------------------------
# File-backed database
# ---------------------------------------------------------------------------

def _file_engine(path, begin_sql: str):
    """
    Engine on a SQLite file at *path*.  *begin_sql* opens every transaction:
    ``BEGIN IMMEDIATE`` takes the write lock up front, plain ``BEGIN`` defers
    it until the first write.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{path}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin_sql)

    return engine


async def _build_sessions(tmp_path, begin_sql: str):
    engine = _file_engine(tmp_path / "newsdesk.db", begin_sql)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def moderation_sessions(tmp_path):
    # Moderation reads the comment before it writes the counter, so each
    # transaction takes the write lock when it starts.
    engine, factory = await _build_sessions(tmp_path, "BEGIN IMMEDIATE")
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def reader_sessions(tmp_path):
    engine, factory = await _build_sessions(tmp_path, "BEGIN")
    yield factory
    await engine.dispose()


async def _seed_article(factory, statuses: list[CommentStatus]) -> tuple[int, list[int]]:
    """Commit an article plus one comment per entry of *statuses*."""
    async with factory() as session:
        author = User(username="desk", email="desk@newsdesk.example")
        session.add(author)
        await session.flush()
        article = Article(
            title="Busy Thread",
            slug="busy-thread",
            content="Body",
            status=ArticleStatus.PUBLISHED,
            user_id=author.id,
        )
        session.add(article)
        await session.flush()

        comment_ids = []
        for i, status in enumerate(statuses):
            comment = await moderation.create(
                session, article.id, content=f"Comment {i}", user_name=f"reader_{i}", status=status
            )
            comment_ids.append(comment.id)
        await session.commit()
        return article.id, comment_ids


async def _in_own_session(factory, operation, *args):
    """Run one service call in its own session and commit, like one request."""
    async with factory() as session:
        try:
            result = await operation(session, *args)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return result


async def _counter_state(factory, article_id: int) -> tuple[int, int]:
    async with factory() as session:
        stored = (
            await session.execute(select(Article.comment_count).where(Article.id == article_id))
        ).scalar_one()
        approved = (
            await session.execute(
                select(func.count())
                .select_from(Comment)
                .where(Comment.article_id == article_id, Comment.status == CommentStatus.APPROVED)
            )
        ).scalar_one()
    return stored, approved


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_concurrent_moderation_of_one_article_keeps_counter(moderation_sessions):
    pending = CommentStatus.PENDING
    approved = CommentStatus.APPROVED
    article_id, ids = await _seed_article(
        moderation_sessions, [pending, pending, pending, pending, approved, approved]
    )
    p1, p2, p3, p4, a1, a2 = ids
    assert await _counter_state(moderation_sessions, article_id) == (2, 2)

    await asyncio.gather(
        _in_own_session(moderation_sessions, moderation.approve, p1),
        _in_own_session(moderation_sessions, moderation.approve, p2),
        _in_own_session(moderation_sessions, moderation.approve, p2),
        _in_own_session(moderation_sessions, moderation.approve, p3),
        _in_own_session(moderation_sessions, moderation.reject, p4),
        _in_own_session(moderation_sessions, moderation.reject, a1),
        _in_own_session(moderation_sessions, moderation.delete, a2),
    )

    # p1, p2 (approved twice, counted once) and p3 remain approved.
    assert await _counter_state(moderation_sessions, article_id) == (3, 3)

    async with moderation_sessions() as session:
        assert await session.get(Comment, a2) is None
        assert (await session.get(Comment, a1)).status == CommentStatus.REJECTED


@pytest.mark.asyncio
async def test_concurrent_approve_and_reject_rounds_keep_counter(moderation_sessions):
    article_id, ids = await _seed_article(moderation_sessions, [CommentStatus.PENDING] * 5)

    for operation in (moderation.approve, moderation.reject, moderation.approve):
        await asyncio.gather(
            *(_in_own_session(moderation_sessions, operation, cid) for cid in ids)
        )
        stored, approved = await _counter_state(moderation_sessions, article_id)
        assert stored == approved

    assert await _counter_state(moderation_sessions, article_id) == (5, 5)

    await asyncio.gather(
        *(_in_own_session(moderation_sessions, moderation.delete, cid) for cid in ids)
    )
    assert await _counter_state(moderation_sessions, article_id) == (0, 0)


# ---------------------------------------------------------------------------
# View counter
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_concurrent_reads_count_every_view(reader_sessions):
    article_id, _ = await _seed_article(reader_sessions, [])
    readers = 8

    await asyncio.gather(
        *(_in_own_session(reader_sessions, article_service.get_article, article_id)
          for _ in range(readers))
    )

    async with reader_sessions() as session:
        views = (
            await session.execute(select(Article.view_count).where(Article.id == article_id))
        ).scalar_one()
    assert views == readers
