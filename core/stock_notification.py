from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from core.log import logger
from core.stock_events import StockEvent
from models.Notification import NotificationType
from repository import notification as notificationRepo


@dataclass(frozen=True)
class StockNotificationDecision:
    create_type: Optional[NotificationType] = None
    resolve_open: bool = False

    @property
    def is_noop(self) -> bool:
        return self.create_type is None and not self.resolve_open


def derive_stock_notification(
    old_counter: int,
    new_counter: int,
    threshold: int,
    has_open_out_of_stock: bool = False,
    has_open_low_stock: bool = False,
) -> StockNotificationDecision:
    """Decide the notification change caused by a counter quantity change.

    - counter hits 0 and nothing unread says so: out_of_stock
    - counter enters (0, threshold] from above the threshold or from 0, and
      nothing unread says so: low_stock
    - counter climbs from at-or-below the threshold to above it: resolve the
      unread low_stock/out_of_stock notifications
    """
    create_type = None
    if new_counter == 0:
        if not has_open_out_of_stock:
            create_type = NotificationType.OUT_OF_STOCK
    elif 0 < new_counter <= threshold:
        crossed_down = old_counter > threshold or old_counter == 0
        if crossed_down and not has_open_low_stock:
            create_type = NotificationType.LOW_STOCK

    resolve_open = old_counter <= threshold < new_counter
    return StockNotificationDecision(create_type=create_type, resolve_open=resolve_open)


def apply_stock_notification(db: Session, event: StockEvent) -> None:
    """Dispatcher handler: persist the decision for a counter-changing event."""
    if not event.touches_counter or event.threshold is None:
        return

    open_notifications = notificationRepo.get_open_stock_notifications(
        db=db, ticket_type_id=event.target_id
    )
    open_types = {n.notification_type for n in open_notifications}
    decision = derive_stock_notification(
        old_counter=event.counter_before,
        new_counter=event.counter_after,
        threshold=event.threshold,
        has_open_out_of_stock=NotificationType.OUT_OF_STOCK.value in open_types,
        has_open_low_stock=NotificationType.LOW_STOCK.value in open_types,
    )
    if decision.is_noop:
        return

    if decision.resolve_open and open_notifications:
        count = notificationRepo.mark_notifications_read(
            db=db, notifications=open_notifications
        )
        logger.info(
            f"Resolved {count} stock notifications for ticket type {event.target_id}"
        )

    if decision.create_type is not None:
        notificationRepo.insert_notification(
            db=db,
            ticket_type_id=event.target_id,
            ticket_name=event.ticket_name or "",
            notification_type=decision.create_type.value,
            current_quantity=event.counter_after,
            threshold=event.threshold,
            kiosk_id=event.kiosk_id,
        )
        logger.info(
            f"Created {decision.create_type.value} notification for ticket type "
            f"{event.target_id} at kiosk {event.kiosk_id}"
        )
