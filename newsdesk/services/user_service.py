"""
User service: CRUD operations for back-office accounts.

Users are listed without pagination because the editorial team is small.
Authentication lives with the external identity provider; only the
profile and role are stored here.
"""
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import User, UserRole
from newsdesk.schemas import UserCreate, UserUpdate


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User ORM instance to a plain dict (list view)."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "display_name": user.display_name,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value,
        "bio": user.bio,
        "active": user.active,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _article_summary_to_dict(article) -> dict:
    """
    Lightweight article dict for embedding in a UserDetail response.
    Author and categories are omitted to avoid circular nesting.
    """
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "status": article.status.value,
        "featured": article.featured,
        "view_count": article.view_count,
        "comment_count": article.comment_count,
        "published_at": article.published_at.isoformat() if article.published_at else None,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "user_id": article.user_id,
        "author": None,
        "categories": [],
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(
    db: AsyncSession,
    role: UserRole | None = None,
    only_active: bool = False,
) -> list[dict]:
    """Return users newest first, optionally filtered by role / active flag."""
    q = select(User)
    if role is not None:
        q = q.where(User.role == role)
    if only_active:
        q = q.where(User.active.is_(True))
    q = q.order_by(User.created_at.desc(), User.id.desc())

    result = await db.execute(q)
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    """
    Return the detail dict for *user_id* including a summary of their
    articles, or None when the user does not exist.
    """
    q = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.articles))
        # Reload the collection even when the user is already in the session.
        .execution_options(populate_existing=True)
    )

    result = await db.execute(q)
    user = result.unique().scalar_one_or_none()
    if user is None:
        return None

    data = _user_to_dict(user)
    data["articles"] = [_article_summary_to_dict(a) for a in user.articles]
    return data


async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Create a new user.  Email and username uniqueness is enforced by the
    schema; the router translates integrity errors into 409 responses.
    """
    user = User(**data.model_dump())
    db.add(user)
    await db.flush()
    return _user_to_dict(user)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> dict | None:
    user = await db.get(User, user_id)
    if user is None:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.flush()
    return _user_to_dict(user)


async def set_user_active(db: AsyncSession, user_id: int, active: bool) -> dict | None:
    return await update_user(db, user_id, UserUpdate(active=active))
