"""
Comment moderation and the denormalised approved-comment counter.

Invariant
---------
``Article.comment_count`` equals the number of that article's comments
whose status is ``APPROVED``.

How it is kept
--------------
Every write that can change whether a comment counts as approved goes
through this module.  Each operation runs inside a savepoint
(``AsyncSession.begin_nested``) of the request transaction and:

1. locks the comment row (``SELECT ... FOR UPDATE``) and re-reads it, so
   two moderators acting on the same comment are serialised;
2. applies the counter delta as a SQL expression
   (``comment_count = comment_count + :delta``) so concurrent moderation
   of *different* comments of one article never loses an update;
3. writes the new status, or deletes the row, in the same savepoint.

When the database reports a serialization failure, deadlock or lock
timeout, the savepoint is rolled back and the operation re-run, up to
``settings.MODERATION_MAX_ATTEMPTS`` times, after which
``ModerationConflictError`` is raised.  ``NotFoundError`` is never retried.

Like the other services, nothing here commits: the outer transaction
belongs to ``get_db``.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.exceptions import ModerationConflictError, NotFoundError
from newsdesk.models import Article, Comment, CommentStatus, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_SQLSTATES: frozenset[str] = frozenset({"40001", "40P01", "55P03"})


def approval_delta(old: CommentStatus | None, new: CommentStatus | None) -> int:
    """
    Return the change in approved-comment count caused by moving a comment
    from *old* to *new*.  ``None`` stands for "no record" (creation or
    deletion).
    """
    return int(new is CommentStatus.APPROVED) - int(old is CommentStatus.APPROVED)


def _is_conflict(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in _CONFLICT_SQLSTATES


async def _run_transactional(
    db: AsyncSession,
    target: str,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """Run *operation* in a savepoint, retrying on concurrency conflicts."""
    attempts = max(1, settings.MODERATION_MAX_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            async with db.begin_nested():
                return await operation()
        except DBAPIError as exc:
            if not _is_conflict(exc):
                raise
            logger.warning(
                "Conflict on %s (attempt %d/%d): %s", target, attempt, attempts, exc.orig
            )
    raise ModerationConflictError(target, attempts)


# ---------------------------------------------------------------------------
# Building blocks (only valid inside _run_transactional)
# ---------------------------------------------------------------------------

async def _lock_comment(db: AsyncSession, comment_id: int) -> Comment:
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(q)).scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    return comment


async def _adjust_comment_count(
    db: AsyncSession, article_id: int, delta: int, now: datetime
) -> None:
    result = await db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(comment_count=Article.comment_count + delta, updated_at=now)
    )
    if result.rowcount == 0:
        raise NotFoundError("Article", article_id)


async def _write_status(
    db: AsyncSession, comment: Comment, status: CommentStatus, now: datetime
) -> None:
    # Status-only write: the caller has already applied the counter delta.
    comment.status = status
    comment.updated_at = now
    await db.flush()


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------

async def set_status(db: AsyncSession, comment_id: int, status: CommentStatus) -> Comment:
    """
    Move comment *comment_id* to *status*, adjusting the parent article's
    ``comment_count`` by the approval delta in the same savepoint.

    Setting the status a comment already has is a no-op: nothing is
    written and the counter is untouched.

    Raises ``NotFoundError`` when the comment (or its article) is missing
    and ``ModerationConflictError`` when retries are exhausted.
    """
    status = CommentStatus(status)

    async def _apply() -> Comment:
        comment = await _lock_comment(db, comment_id)
        previous = comment.status
        if previous is status:
            logger.debug("Comment %s already %s", comment_id, status.value)
            return comment

        now = utcnow()
        delta = approval_delta(previous, status)
        if delta:
            await _adjust_comment_count(db, comment.article_id, delta, now)
        await _write_status(db, comment, status, now)
        logger.info(
            "Comment %s: %s -> %s (article %s comment_count %+d)",
            comment_id, previous.value, status.value, comment.article_id, delta,
        )
        return comment

    return await _run_transactional(db, f"comment {comment_id}", _apply)


async def approve(db: AsyncSession, comment_id: int) -> Comment:
    """Approve a comment; idempotent."""
    return await set_status(db, comment_id, CommentStatus.APPROVED)


async def reject(db: AsyncSession, comment_id: int) -> Comment:
    """Reject a comment, giving back its slot in the counter if it was approved."""
    return await set_status(db, comment_id, CommentStatus.REJECTED)


async def delete(db: AsyncSession, comment_id: int) -> None:
    """
    Delete a comment.  An approved comment's slot in ``comment_count`` is
    released before the row is removed, within the same savepoint.
    """

    async def _apply() -> None:
        comment = await _lock_comment(db, comment_id)
        previous, article_id = comment.status, comment.article_id
        delta = approval_delta(previous, None)
        if delta:
            await _adjust_comment_count(db, article_id, delta, utcnow())
        await db.delete(comment)
        await db.flush()
        logger.info(
            "Comment %s deleted (was %s, article %s comment_count %+d)",
            comment_id, previous.value, article_id, delta,
        )

    await _run_transactional(db, f"comment {comment_id}", _apply)


async def create(
    db: AsyncSession,
    article_id: int,
    *,
    content: str,
    user_name: str,
    user_email: str | None = None,
    status: CommentStatus = CommentStatus.PENDING,
) -> Comment:
    """
    Insert a new comment.  A comment created directly as ``APPROVED``
    counts immediately, so the article counter moves with the insert.
    """
    status = CommentStatus(status)

    async def _apply() -> Comment:
        now = utcnow()
        comment = Comment(
            content=content,
            user_name=user_name,
            user_email=user_email,
            likes=0,
            status=status,
            article_id=article_id,
            created_at=now,
            updated_at=now,
        )
        db.add(comment)
        await db.flush()
        delta = approval_delta(None, status)
        if delta:
            await _adjust_comment_count(db, article_id, delta, now)
        return comment

    return await _run_transactional(db, f"new comment on article {article_id}", _apply)


async def reconcile_comment_count(db: AsyncSession, article_id: int) -> int:
    """
    Recompute ``comment_count`` for *article_id* from the comment rows and
    store it.  Returns the approved-comment count.

    Drift can only come from writes made outside this module (manual SQL,
    imports); it is logged as a warning when corrected.
    """

    async def _apply() -> int:
        q = (
            select(Article)
            .where(Article.id == article_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        article = (await db.execute(q)).scalar_one_or_none()
        if article is None:
            raise NotFoundError("Article", article_id)

        approved = (
            await db.execute(
                select(func.count())
                .select_from(Comment)
                .where(
                    Comment.article_id == article_id,
                    Comment.status == CommentStatus.APPROVED,
                )
            )
        ).scalar_one()

        if article.comment_count != approved:
            logger.warning(
                "Article %s comment_count drifted: stored=%s actual=%s",
                article_id, article.comment_count, approved,
            )
            article.comment_count = approved
            article.updated_at = utcnow()
            await db.flush()
        return approved

    return await _run_transactional(db, f"article {article_id}", _apply)
