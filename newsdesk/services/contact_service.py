"""Contact service: inbox of messages sent through the public contact form."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import ContactMessage
from newsdesk.schemas import ContactMessageCreate


def _message_to_dict(message: ContactMessage) -> dict:
    return {
        "id": message.id,
        "name": message.name,
        "email": message.email,
        "subject": message.subject,
        "message": message.message,
        "is_read": message.is_read,
        "is_replied": message.is_replied,
        "created_at": message.created_at.isoformat() if message.created_at else None,
        "updated_at": message.updated_at.isoformat() if message.updated_at else None,
    }


async def get_messages(db: AsyncSession, only_unread: bool = False) -> list[dict]:
    q = select(ContactMessage)
    if only_unread:
        q = q.where(ContactMessage.is_read.is_(False))
    q = q.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
    return [_message_to_dict(m) for m in (await db.execute(q)).scalars().all()]


async def get_message(db: AsyncSession, message_id: int) -> dict | None:
    message = await db.get(ContactMessage, message_id)
    return _message_to_dict(message) if message else None


async def create_message(db: AsyncSession, data: ContactMessageCreate) -> dict:
    message = ContactMessage(**data.model_dump(), is_read=False, is_replied=False)
    db.add(message)
    await db.flush()
    return _message_to_dict(message)


async def _set_flag(db: AsyncSession, message_id: int, field: str, value: bool) -> dict | None:
    message = await db.get(ContactMessage, message_id)
    if message is None:
        return None
    setattr(message, field, value)
    await db.flush()
    return _message_to_dict(message)


async def mark_read(db: AsyncSession, message_id: int, value: bool = True) -> dict | None:
    return await _set_flag(db, message_id, "is_read", value)


async def mark_replied(db: AsyncSession, message_id: int, value: bool = True) -> dict | None:
    return await _set_flag(db, message_id, "is_replied", value)


async def delete_message(db: AsyncSession, message_id: int) -> bool:
    message = await db.get(ContactMessage, message_id)
    if message is None:
        return False
    await db.delete(message)
    await db.flush()
    return True
