from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.models import CommentStatus
from newsdesk.schemas import CommentResponse, CommentStatusUpdate, CommentUpdate
from newsdesk.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])

# Moderation endpoints let NotFoundError / ModerationConflictError propagate;
# the handlers registered in main.py turn them into 404 / 409.


@router.get("", response_model=list[CommentResponse])
async def list_comments(
    status: CommentStatus | None = Query(None),
    article_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_comments(db, status=status, article_id=article_id)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    comment = await comment_service.get_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.patch("/{comment_id}", response_model=CommentResponse)
async def update_comment(comment_id: int, data: CommentUpdate, db: AsyncSession = Depends(get_db)):
    comment = await comment_service.update_comment(db, comment_id, data)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.put("/{comment_id}/status", response_model=CommentResponse)
async def set_comment_status(
    comment_id: int, data: CommentStatusUpdate, db: AsyncSession = Depends(get_db)
):
    return await comment_service.set_comment_status(db, comment_id, data.status)


@router.post("/{comment_id}/approve", response_model=CommentResponse)
async def approve_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.approve_comment(db, comment_id)


@router.post("/{comment_id}/reject", response_model=CommentResponse)
async def reject_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.reject_comment(db, comment_id)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    await comment_service.delete_comment(db, comment_id)
