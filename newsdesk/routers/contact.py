from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.schemas import ContactMessageCreate, ContactMessageResponse, FlagUpdate
from newsdesk.services import contact_service

router = APIRouter(prefix="/api/v1/contact-messages", tags=["contact"])


@router.get("", response_model=list[ContactMessageResponse])
async def list_messages(
    only_unread: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await contact_service.get_messages(db, only_unread=only_unread)


@router.get("/{message_id}", response_model=ContactMessageResponse)
async def get_message(message_id: int, db: AsyncSession = Depends(get_db)):
    message = await contact_service.get_message(db, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.post("", status_code=201, response_model=ContactMessageResponse)
async def create_message(data: ContactMessageCreate, db: AsyncSession = Depends(get_db)):
    return await contact_service.create_message(db, data)


@router.patch("/{message_id}/read", response_model=ContactMessageResponse)
async def mark_read(message_id: int, data: FlagUpdate, db: AsyncSession = Depends(get_db)):
    message = await contact_service.mark_read(db, message_id, data.value)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.patch("/{message_id}/replied", response_model=ContactMessageResponse)
async def mark_replied(message_id: int, data: FlagUpdate, db: AsyncSession = Depends(get_db)):
    message = await contact_service.mark_replied(db, message_id, data.value)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.delete("/{message_id}", status_code=204)
async def delete_message(message_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await contact_service.delete_message(db, message_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Message not found")
