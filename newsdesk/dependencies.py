"""Query-parameter dependencies shared by the list endpoints."""
from fastapi import Query

from newsdesk.config import settings
from newsdesk.models import ArticleStatus


class PaginationParams:
    """
    Page and sort parameters for paginated lists.

    ``page_size`` is capped at ``settings.MAX_PAGE_SIZE`` instead of being
    rejected.  ``sort_by`` is passed through as-is; the article service
    only honours whitelisted columns and falls back to ``created_at``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description=f"Items per page, capped at {settings.MAX_PAGE_SIZE}.",
        ),
        sort_by: str = Query("created_at", description="Column to sort by."),
        sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order


class ArticleFilterParams:
    """Optional filters accepted by the article list endpoint."""

    def __init__(
        self,
        status: ArticleStatus | None = Query(None, description="Editorial status."),
        featured: bool | None = Query(None, description="Only (non-)featured articles."),
        category_id: int | None = Query(None, description="Articles in this category."),
        author_id: int | None = Query(None, description="Articles by this user."),
    ) -> None:
        self.status = status
        self.featured = featured
        self.category_id = category_id
        self.author_id = author_id
