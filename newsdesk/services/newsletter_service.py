"""
Newsletter service: subscriber list management.

Unsubscribing only flips ``active``; rows are removed solely through
``delete_subscriber`` so that a returning reader can be reactivated.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.exceptions import DuplicateError, NotFoundError
from newsdesk.models import NewsletterSubscriber
from newsdesk.schemas import SubscriberCreate

logger = logging.getLogger(__name__)


def _normalise_email(email: str) -> str:
    return email.strip().lower()


def _subscriber_to_dict(subscriber: NewsletterSubscriber) -> dict:
    return {
        "id": subscriber.id,
        "email": subscriber.email,
        "name": subscriber.name,
        "active": subscriber.active,
        "created_at": subscriber.created_at.isoformat() if subscriber.created_at else None,
        "updated_at": subscriber.updated_at.isoformat() if subscriber.updated_at else None,
    }


async def _find_by_email(db: AsyncSession, email: str) -> NewsletterSubscriber | None:
    q = select(NewsletterSubscriber).where(NewsletterSubscriber.email == _normalise_email(email))
    return (await db.execute(q)).scalar_one_or_none()


async def get_subscribers(db: AsyncSession, only_active: bool = True) -> list[dict]:
    q = select(NewsletterSubscriber)
    if only_active:
        q = q.where(NewsletterSubscriber.active.is_(True))
    q = q.order_by(NewsletterSubscriber.created_at.desc(), NewsletterSubscriber.id.desc())
    return [_subscriber_to_dict(s) for s in (await db.execute(q)).scalars().all()]


async def get_subscriber(db: AsyncSession, subscriber_id: int) -> dict | None:
    subscriber = await db.get(NewsletterSubscriber, subscriber_id)
    return _subscriber_to_dict(subscriber) if subscriber else None


async def email_exists(db: AsyncSession, email: str) -> bool:
    return await _find_by_email(db, email) is not None


async def subscribe(db: AsyncSession, data: SubscriberCreate) -> dict:
    """Add an active subscriber.  Raises ``DuplicateError`` for a known email."""
    if await email_exists(db, data.email):
        raise DuplicateError(f"{data.email} is already subscribed to the newsletter")

    subscriber = NewsletterSubscriber(
        email=_normalise_email(data.email),
        name=data.name,
        active=True,
    )
    db.add(subscriber)
    await db.flush()
    logger.info("Newsletter subscriber %s added", subscriber.id)
    return _subscriber_to_dict(subscriber)


async def _set_active(db: AsyncSession, subscriber_id: int, active: bool) -> dict:
    subscriber = await db.get(NewsletterSubscriber, subscriber_id)
    if subscriber is None:
        raise NotFoundError("Subscriber", subscriber_id)
    subscriber.active = active
    await db.flush()
    return _subscriber_to_dict(subscriber)


async def unsubscribe(db: AsyncSession, subscriber_id: int) -> dict:
    return await _set_active(db, subscriber_id, False)


async def reactivate(db: AsyncSession, subscriber_id: int) -> dict:
    return await _set_active(db, subscriber_id, True)


async def unsubscribe_by_email(db: AsyncSession, email: str) -> dict:
    subscriber = await _find_by_email(db, email)
    if subscriber is None:
        raise NotFoundError("Subscriber", email)
    return await _set_active(db, subscriber.id, False)


async def delete_subscriber(db: AsyncSession, subscriber_id: int) -> bool:
    subscriber = await db.get(NewsletterSubscriber, subscriber_id)
    if subscriber is None:
        return False
    await db.delete(subscriber)
    await db.flush()
    return True


async def export_active_emails(db: AsyncSession) -> list[str]:
    """Emails of active subscribers, oldest subscription first, for mailing."""
    q = (
        select(NewsletterSubscriber.email)
        .where(NewsletterSubscriber.active.is_(True))
        .order_by(NewsletterSubscriber.created_at.asc(), NewsletterSubscriber.id.asc())
    )
    return list((await db.execute(q)).scalars().all())
