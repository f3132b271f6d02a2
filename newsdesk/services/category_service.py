"""
Category service: CRUD for article categories.

``article_count`` is not stored: it is computed with one grouped COUNT
over the association table whenever categories are listed.
"""
import time

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import Category, article_categories
from newsdesk.schemas import CategoryCreate, CategoryUpdate
from newsdesk.services.article_service import slugify


def _category_to_dict(category: Category, article_count: int = 0) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "color": category.color,
        "display_order": category.display_order,
        "active": category.active,
        "article_count": article_count,
        "created_at": category.created_at.isoformat() if category.created_at else None,
        "updated_at": category.updated_at.isoformat() if category.updated_at else None,
    }


async def _article_counts(db: AsyncSession, category_ids: list[int]) -> dict[int, int]:
    if not category_ids:
        return {}
    q = (
        select(article_categories.c.category_id, func.count())
        .where(article_categories.c.category_id.in_(category_ids))
        .group_by(article_categories.c.category_id)
    )
    return {category_id: count for category_id, count in (await db.execute(q)).all()}


async def _unique_slug(db: AsyncSession, name: str, exclude_id: int | None = None) -> str:
    slug = slugify(name)
    q = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        q = q.where(Category.id != exclude_id)
    if (await db.execute(q)).first() is not None:
        slug = f"{slug}-{int(time.time())}"
    return slug


async def get_categories(db: AsyncSession, only_active: bool = True) -> list[dict]:
    """Return categories ordered by ``display_order`` then name."""
    q = select(Category)
    if only_active:
        q = q.where(Category.active.is_(True))
    q = q.order_by(Category.display_order.asc(), Category.name.asc())

    categories = (await db.execute(q)).scalars().all()
    counts = await _article_counts(db, [c.id for c in categories])
    return [_category_to_dict(c, counts.get(c.id, 0)) for c in categories]


async def get_category(db: AsyncSession, category_id: int) -> dict | None:
    category = await db.get(Category, category_id)
    if category is None:
        return None
    counts = await _article_counts(db, [category.id])
    return _category_to_dict(category, counts.get(category.id, 0))


async def create_category(db: AsyncSession, data: CategoryCreate) -> dict:
    """
    Create a category.  Name uniqueness is enforced by the schema; the
    router translates the IntegrityError into a 409.
    """
    category = Category(
        name=data.name,
        slug=await _unique_slug(db, data.name),
        description=data.description,
        color=data.color,
        display_order=data.display_order,
        active=data.active,
    )
    db.add(category)
    await db.flush()
    return _category_to_dict(category)


async def update_category(
    db: AsyncSession, category_id: int, data: CategoryUpdate
) -> dict | None:
    category = await db.get(Category, category_id)
    if category is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(category, field, value)
    if "name" in update_data:
        category.slug = await _unique_slug(db, update_data["name"], exclude_id=category_id)

    await db.flush()
    counts = await _article_counts(db, [category.id])
    return _category_to_dict(category, counts.get(category.id, 0))


async def set_category_active(db: AsyncSession, category_id: int, active: bool) -> dict | None:
    return await update_category(db, category_id, CategoryUpdate(active=active))


async def delete_category(db: AsyncSession, category_id: int) -> bool:
    """
    Delete a category.  Articles keep existing; only their link to this
    category is removed.
    """
    category = await db.get(Category, category_id)
    if category is None:
        return False

    await db.execute(
        article_categories.delete().where(article_categories.c.category_id == category_id)
    )
    await db.delete(category)
    await db.flush()
    return True
