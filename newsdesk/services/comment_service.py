"""
Comment service: listing, creation and editing of comments.

Anything that touches ``status`` (or removes a comment) is delegated to
``services.moderation`` so the parent article's ``comment_count`` stays
equal to its number of approved comments.  This module owns reads and the
presentational fields only.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import Article, Comment, CommentStatus
from newsdesk.schemas import CommentCreate, CommentUpdate
from newsdesk.services import moderation

logger = logging.getLogger(__name__)

# Fields an editor may change without going through moderation.
_EDITABLE_FIELDS: frozenset[str] = frozenset({"content", "user_name", "user_email"})


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "user_name": comment.user_name,
        "user_email": comment.user_email,
        "likes": comment.likes,
        "status": comment.status.value,
        "article_id": comment.article_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "updated_at": comment.updated_at.isoformat() if comment.updated_at else None,
    }


async def list_comments(
    db: AsyncSession,
    status: CommentStatus | None = None,
    article_id: int | None = None,
) -> list[dict]:
    """Return comments newest first, optionally filtered by status and/or article."""
    q = select(Comment)
    if status is not None:
        q = q.where(Comment.status == status)
    if article_id is not None:
        q = q.where(Comment.article_id == article_id)
    q = q.order_by(Comment.created_at.desc(), Comment.id.desc())

    result = await db.execute(q)
    return [comment_to_dict(c) for c in result.scalars().all()]


async def get_comment(db: AsyncSession, comment_id: int) -> dict | None:
    result = await db.execute(select(Comment).where(Comment.id == comment_id))
    comment = result.scalar_one_or_none()
    return comment_to_dict(comment) if comment else None


async def add_comment(
    db: AsyncSession,
    article_id: int,
    data: CommentCreate,
) -> dict | None:
    """
    Create a comment on *article_id*.

    Returns None when the article does not exist.  Comments start as
    PENDING unless the payload asks for APPROVED, in which case the
    article counter is incremented together with the insert.
    """
    exists = await db.execute(select(Article.id).where(Article.id == article_id))
    if exists.scalar_one_or_none() is None:
        return None

    comment = await moderation.create(
        db,
        article_id,
        content=data.content,
        user_name=data.user_name,
        user_email=data.user_email,
        status=data.status,
    )
    logger.info("Comment %s added to article %s as %s", comment.id, article_id, comment.status.value)
    return comment_to_dict(comment)


async def update_comment(db: AsyncSession, comment_id: int, data: CommentUpdate) -> dict | None:
    """
    Partially update a comment.  Returns None when it does not exist.

    Presentational fields are written directly; a ``status`` in the payload
    is applied through ``moderation.set_status``.
    """
    result = await db.execute(select(Comment).where(Comment.id == comment_id))
    comment = result.scalar_one_or_none()
    if comment is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    new_status = update_data.pop("status", None)

    changed = {k: v for k, v in update_data.items() if k in _EDITABLE_FIELDS}
    for field, value in changed.items():
        setattr(comment, field, value)
    if changed:
        await db.flush()

    if new_status is not None:
        comment = await moderation.set_status(db, comment_id, new_status)
    return comment_to_dict(comment)


async def set_comment_status(db: AsyncSession, comment_id: int, status: CommentStatus) -> dict:
    return comment_to_dict(await moderation.set_status(db, comment_id, status))


async def approve_comment(db: AsyncSession, comment_id: int) -> dict:
    return comment_to_dict(await moderation.approve(db, comment_id))


async def reject_comment(db: AsyncSession, comment_id: int) -> dict:
    return comment_to_dict(await moderation.reject(db, comment_id))


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    await moderation.delete(db, comment_id)
