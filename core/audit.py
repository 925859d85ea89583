from sqlalchemy.orm import Session

from core.stock_events import StockEvent
from repository.audit_log import insert_audit_log


def record_audit_event(db: Session, event: StockEvent) -> None:
    actor = event.actor
    insert_audit_log(
        db=db,
        action=event.action,
        actor_id=actor.id if actor else None,
        actor_name=actor.name if actor else None,
        target_id=event.target_id,
        target_type=event.target_type,
        details=event.details,
        kiosk_id=event.kiosk_id or (actor.kiosk_id if actor else None),
    )
