from typing import List, Optional
from fastapi import Query
from pydantic import BaseModel

from models.Notification import Notification


class NotificationQuery(BaseModel):
    is_read: Optional[bool] = Query(None, description="Filter by read flag")
    ticket_type_id: Optional[str] = Query(None, description="Filter by ticket type")
    kiosk_id: Optional[str] = Query(None, description="Filter by kiosk")
    notification_type: Optional[str] = Query(
        None, description="low_stock or out_of_stock"
    )


class NotificationResponseItem(BaseModel):
    id: str
    ticket_type_id: str
    ticket_name: str
    kiosk_id: Optional[str] = None
    notification_type: str
    current_quantity: int
    threshold: int
    is_read: bool
    created_date: Optional[str] = None


class NotificationListResponse(BaseModel):
    results: List[NotificationResponseItem]


class MarkReadResponse(BaseModel):
    updated: int


def notification_response_item_from_model(
    notification: Notification,
) -> NotificationResponseItem:
    return NotificationResponseItem(
        id=str(notification.id),
        ticket_type_id=str(notification.ticket_type_id),
        ticket_name=notification.ticket_name,
        kiosk_id=notification.kiosk_id,
        notification_type=notification.notification_type,
        current_quantity=notification.current_quantity,
        threshold=notification.threshold,
        is_read=bool(notification.is_read),
        created_date=(
            notification.created_date.isoformat() if notification.created_date else None
        ),
    )
