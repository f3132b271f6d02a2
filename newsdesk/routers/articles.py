from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.dependencies import ArticleFilterParams, PaginationParams
from newsdesk.schemas import (
    ArticleCreate,
    ArticleDetail,
    ArticleFeaturedUpdate,
    ArticleStatusUpdate,
    ArticleUpdate,
    CommentCreate,
    CommentResponse,
    PaginatedResponse,
)
from newsdesk.services import article_service, comment_service, moderation

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


@router.get("", response_model=PaginatedResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    filters: ArticleFilterParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_articles(
        db,
        pagination.page,
        pagination.page_size,
        pagination.sort_by,
        pagination.sort_order,
        status=filters.status,
        featured=filters.featured,
        category_id=filters.category_id,
        author_id=filters.author_id,
    )


@router.get("/{article_id}", response_model=ArticleDetail)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    article = await article_service.get_article(db, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.post("", status_code=201, response_model=ArticleDetail)
async def create_article(data: ArticleCreate, db: AsyncSession = Depends(get_db)):
    return await article_service.create_article(db, data)


@router.put("/{article_id}", response_model=ArticleDetail)
async def update_article(article_id: int, data: ArticleUpdate, db: AsyncSession = Depends(get_db)):
    article = await article_service.update_article(db, article_id, data)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.patch("/{article_id}/status", response_model=ArticleDetail)
async def update_article_status(
    article_id: int, data: ArticleStatusUpdate, db: AsyncSession = Depends(get_db)
):
    article = await article_service.update_article_status(db, article_id, data.status)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.patch("/{article_id}/featured", response_model=ArticleDetail)
async def update_article_featured(
    article_id: int, data: ArticleFeaturedUpdate, db: AsyncSession = Depends(get_db)
):
    article = await article_service.update_article_featured(db, article_id, data.featured)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await article_service.delete_article(db, article_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")


@router.get("/{article_id}/comments", response_model=list[CommentResponse])
async def list_article_comments(article_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.list_comments(db, article_id=article_id)


@router.post("/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(article_id: int, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    comment = await comment_service.add_comment(db, article_id, data)
    if not comment:
        raise HTTPException(status_code=404, detail="Article not found")
    return comment


@router.post("/{article_id}/comment-count/reconcile")
async def reconcile_comment_count(article_id: int, db: AsyncSession = Depends(get_db)):
    count = await moderation.reconcile_comment_count(db, article_id)
    return {"article_id": article_id, "comment_count": count}
