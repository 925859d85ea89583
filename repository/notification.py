from typing import Optional, Sequence
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from core.helper import get_current_time_in_timezone, parse_uuid
from models.Notification import STOCK_NOTIFICATION_TYPES, Notification
from settings import TZ


def get_notification_by_id(db: Session, id) -> Optional[Notification]:
    notification_id = parse_uuid(id)
    if notification_id is None:
        return None
    query = select(Notification).where(Notification.id == notification_id)
    return db.execute(query).scalar()


def get_notifications(
    db: Session,
    is_read: Optional[bool] = None,
    ticket_type_id: Optional[str] = None,
    kiosk_id: Optional[str] = None,
    notification_type: Optional[str] = None,
    limit: Optional[int] = 100,
) -> Sequence[Notification]:
    query = select(Notification)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)
    if ticket_type_id is not None:
        query = query.where(Notification.ticket_type_id == parse_uuid(ticket_type_id))
    if kiosk_id is not None:
        query = query.where(Notification.kiosk_id == kiosk_id)
    if notification_type is not None:
        query = query.where(Notification.notification_type == notification_type)
    query = query.order_by(Notification.created_date.desc())
    if limit:
        query = query.limit(limit)
    return db.execute(query).scalars().all()


def get_open_stock_notifications(db: Session, ticket_type_id) -> Sequence[Notification]:
    query = select(Notification).where(
        Notification.ticket_type_id == parse_uuid(ticket_type_id),
        Notification.is_read.is_(False),
        Notification.notification_type.in_(STOCK_NOTIFICATION_TYPES),
    )
    return db.execute(query).scalars().all()


def insert_notification(
    db: Session,
    ticket_type_id,
    ticket_name: str,
    notification_type: str,
    current_quantity: int,
    threshold: int,
    kiosk_id: Optional[str] = None,
    is_commit: bool = True,
) -> Notification:
    now = get_current_time_in_timezone(TZ)
    notification = Notification(
        ticket_type_id=parse_uuid(ticket_type_id),
        ticket_name=ticket_name,
        kiosk_id=kiosk_id,
        notification_type=notification_type,
        current_quantity=current_quantity,
        threshold=threshold,
        is_read=False,
        created_date=now,
        updated_date=now,
    )
    db.add(notification)
    if is_commit:
        db.commit()
        db.refresh(notification)
    return notification


def mark_notifications_read(
    db: Session, notifications: Sequence[Notification], is_commit: bool = True
) -> int:
    now = get_current_time_in_timezone(TZ)
    for notification in notifications:
        notification.is_read = True
        notification.updated_date = now
    if is_commit:
        db.commit()
    return len(notifications)


def mark_all_notifications_read(db: Session, kiosk_id: Optional[str] = None) -> int:
    stmt = (
        update(Notification)
        .where(Notification.is_read.is_(False))
        .values(is_read=True, updated_date=get_current_time_in_timezone(TZ))
    )
    if kiosk_id is not None:
        stmt = stmt.where(Notification.kiosk_id == kiosk_id)
    result = db.execute(stmt)
    db.commit()
    return result.rowcount
