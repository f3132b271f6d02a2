from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.schemas import SubscriberCreate, SubscriberResponse, UnsubscribeRequest
from newsdesk.services import newsletter_service

router = APIRouter(prefix="/api/v1/newsletter", tags=["newsletter"])


@router.get("/subscribers", response_model=list[SubscriberResponse])
async def list_subscribers(
    only_active: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    return await newsletter_service.get_subscribers(db, only_active=only_active)


@router.get("/subscribers/export", response_model=list[str])
async def export_active_emails(db: AsyncSession = Depends(get_db)):
    return await newsletter_service.export_active_emails(db)


@router.get("/subscribers/{subscriber_id}", response_model=SubscriberResponse)
async def get_subscriber(subscriber_id: int, db: AsyncSession = Depends(get_db)):
    subscriber = await newsletter_service.get_subscriber(db, subscriber_id)
    if not subscriber:
        raise HTTPException(status_code=404, detail="Subscriber not found")
    return subscriber


@router.post("/subscribers", status_code=201, response_model=SubscriberResponse)
async def subscribe(data: SubscriberCreate, db: AsyncSession = Depends(get_db)):
    return await newsletter_service.subscribe(db, data)


@router.post("/unsubscribe", response_model=SubscriberResponse)
async def unsubscribe_by_email(data: UnsubscribeRequest, db: AsyncSession = Depends(get_db)):
    return await newsletter_service.unsubscribe_by_email(db, data.email)


@router.post("/subscribers/{subscriber_id}/unsubscribe", response_model=SubscriberResponse)
async def unsubscribe(subscriber_id: int, db: AsyncSession = Depends(get_db)):
    return await newsletter_service.unsubscribe(db, subscriber_id)


@router.post("/subscribers/{subscriber_id}/reactivate", response_model=SubscriberResponse)
async def reactivate(subscriber_id: int, db: AsyncSession = Depends(get_db)):
    return await newsletter_service.reactivate(db, subscriber_id)


@router.delete("/subscribers/{subscriber_id}", status_code=204)
async def delete_subscriber(subscriber_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await newsletter_service.delete_subscriber(db, subscriber_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Subscriber not found")
