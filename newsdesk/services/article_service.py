"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Eager loading via ``joinedload`` (many-to-one: author) and
  ``selectinload`` (one-to-many / many-to-many: categories, comments) is
  used throughout to avoid N+1 queries.  ``unique()`` is required after
  any query that combines ``joinedload`` with collections.
- ``comment_count`` is never written here.  It is owned by
  ``services.moderation``; create/update payloads cannot set it.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import math
import re
import time
import unicodedata
from datetime import datetime, timezone

from sqlalchemy import asc, delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from newsdesk.models import Article, ArticleStatus, Category, Comment, article_categories
from newsdesk.schemas import ArticleCreate, ArticleUpdate, PaginatedResponse
from newsdesk.services.comment_service import comment_to_dict

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset(
    {"created_at", "published_at", "view_count", "comment_count", "title"}
)


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase, accent-free slug derived from *text*."""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def _resolve_sort_column(sort_by: str):
    """
    Return the SQLAlchemy column expression for *sort_by*.

    Falls back to ``Article.created_at`` for any unrecognised column name.
    """
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Article, sort_by)
    return Article.created_at


async def _unique_slug(db: AsyncSession, title: str, exclude_id: int | None = None) -> str:
    """Slug for *title*, suffixed with a Unix timestamp when already taken."""
    slug = slugify(title)
    q = select(Article.id).where(Article.slug == slug)
    if exclude_id is not None:
        q = q.where(Article.id != exclude_id)
    if (await db.execute(q)).first() is not None:
        slug = f"{slug}-{int(time.time())}"
    return slug


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _serialize_user(author) -> dict | None:
    if author is None:
        return None
    return {
        "id": author.id,
        "username": author.username,
        "email": author.email,
        "display_name": author.display_name,
        "first_name": author.first_name,
        "last_name": author.last_name,
        "role": author.role.value,
        "bio": author.bio,
        "active": author.active,
        "created_at": author.created_at.isoformat() if author.created_at else None,
    }


def article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance to a plain dict (list view)."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "image_url": article.image_url,
        "status": article.status.value,
        "featured": article.featured,
        "view_count": article.view_count,
        "comment_count": article.comment_count,
        "like_count": article.like_count,
        "share_count": article.share_count,
        "published_at": article.published_at.isoformat() if article.published_at else None,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "user_id": article.user_id,
        "author": _serialize_user(article.author),
        "categories": [{"id": c.id, "name": c.name, "slug": c.slug} for c in article.categories],
    }


def _article_detail_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance to a plain dict (detail view)."""
    data = article_to_dict(article)
    data["content"] = article.content
    data["comments"] = [comment_to_dict(c) for c in article.comments]
    return data


async def _resolve_categories(db: AsyncSession, category_ids: list[int]) -> list[Category]:
    """
    Return the Category rows for *category_ids*.  Unknown ids are ignored;
    categories are managed through ``category_service`` only.
    """
    if not category_ids:
        return []
    result = await db.execute(select(Category).where(Category.id.in_(set(category_ids))))
    return list(result.scalars().all())


async def _load_article(db: AsyncSession, article_id: int) -> Article | None:
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(
            joinedload(Article.author),
            selectinload(Article.categories),
            selectinload(Article.comments),
        )
        # Refresh rows already in the identity map (e.g. just flushed, or
        # counters changed by moderation's bulk UPDATE).
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    status: ArticleStatus | None = None,
    featured: bool | None = None,
    category_id: int | None = None,
    author_id: int | None = None,
) -> PaginatedResponse:
    """
    Return a paginated, filtered list of articles.

    Two SQL statements plus one ``selectinload`` are issued:
    1. COUNT over the filtered set.
    2. SELECT with LIMIT/OFFSET and the author JOIN.
    3. Categories for the returned page.
    """
    filters = []
    if status is not None:
        filters.append(Article.status == status)
    if featured is not None:
        filters.append(Article.featured.is_(featured))
    if author_id is not None:
        filters.append(Article.user_id == author_id)
    if category_id is not None:
        filters.append(Article.categories.any(Category.id == category_id))

    count_q = select(func.count()).select_from(Article).where(*filters)
    total: int = (await db.execute(count_q)).scalar_one()

    sort_col = _resolve_sort_column(sort_by)
    order_expr = desc(sort_col) if sort_order == "desc" else asc(sort_col)

    articles_q = (
        select(Article)
        .where(*filters)
        .options(joinedload(Article.author), selectinload(Article.categories))
        .order_by(order_expr, desc(Article.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(articles_q)
    articles = result.unique().scalars().all()

    return PaginatedResponse(
        items=[article_to_dict(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


async def get_article(db: AsyncSession, article_id: int, count_view: bool = True) -> dict | None:
    """
    Return the full detail dict for *article_id* (content, categories and
    comments).  Each read counts as a view unless *count_view* is False.

    Returns None when the article does not exist.
    """
    if count_view:
        # Incremented in SQL so simultaneous readers never lose a view.
        # A view is not an edit: updated_at keeps its value.
        await db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(view_count=Article.view_count + 1, updated_at=Article.updated_at)
        )

    article = await _load_article(db, article_id)
    if article is None:
        return None
    return _article_detail_to_dict(article)


async def create_article(db: AsyncSession, data: ArticleCreate) -> dict:
    """
    Create a new article and return its full detail dict.

    Slug collisions get a Unix timestamp suffix.  Counters start at zero.
    """
    article = Article(
        title=data.title,
        slug=await _unique_slug(db, data.title),
        content=data.content,
        excerpt=data.excerpt,
        image_url=data.image_url,
        status=data.status,
        featured=data.featured,
        user_id=data.user_id,
        view_count=0,
        comment_count=0,
        like_count=0,
        share_count=0,
    )
    if data.status is ArticleStatus.PUBLISHED:
        article.published_at = datetime.now(timezone.utc)

    article.categories.extend(await _resolve_categories(db, data.category_ids))

    db.add(article)
    await db.flush()
    return _article_detail_to_dict(await _load_article(db, article.id))


async def update_article(
    db: AsyncSession, article_id: int, data: ArticleUpdate
) -> dict | None:
    """
    Partially update an existing article and return its updated detail dict.

    Returns None when the article does not exist.  Only fields explicitly
    set in the payload are modified (``model_dump(exclude_unset=True)``).
    """
    article = await _load_article(db, article_id)
    if article is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    category_ids: list[int] | None = update_data.pop("category_ids", None)

    for field, value in update_data.items():
        setattr(article, field, value)

    if "title" in update_data:
        article.slug = await _unique_slug(db, update_data["title"], exclude_id=article_id)

    # Stamp published_at the first time the article goes live.
    if article.status is ArticleStatus.PUBLISHED and not article.published_at:
        article.published_at = datetime.now(timezone.utc)

    if category_ids is not None:
        article.categories.clear()
        article.categories.extend(await _resolve_categories(db, category_ids))

    await db.flush()
    return _article_detail_to_dict(article)


async def update_article_status(
    db: AsyncSession, article_id: int, status: ArticleStatus
) -> dict | None:
    """Set the editorial status; publishing stamps ``published_at``."""
    article = await _load_article(db, article_id)
    if article is None:
        return None

    article.status = status
    if status is ArticleStatus.PUBLISHED:
        article.published_at = datetime.now(timezone.utc)
    await db.flush()
    return _article_detail_to_dict(article)


async def update_article_featured(db: AsyncSession, article_id: int, featured: bool) -> dict | None:
    article = await _load_article(db, article_id)
    if article is None:
        return None

    article.featured = featured
    await db.flush()
    return _article_detail_to_dict(article)


async def delete_article(db: AsyncSession, article_id: int) -> bool:
    """
    Delete the article identified by *article_id* together with its
    comments and category links.

    Returns True on success, False when the article does not exist.
    """
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if article is None:
        return False

    await db.execute(delete(Comment).where(Comment.article_id == article_id))
    await db.execute(
        delete(article_categories).where(article_categories.c.article_id == article_id)
    )
    await db.delete(article)
    await db.flush()
    return True
