"""Post-commit side effects of inventory operations.

Every mutating inventory operation publishes exactly one :class:`StockEvent`
after its write is committed. Subscribers (the audit trail, stock
notifications) run in registration order; a failing subscriber is logged, its
pending session work is rolled back, and dispatch carries on. Nothing raised by
a subscriber ever reaches the caller of the inventory operation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from core.log import logger
from schemas.auth import CurrentUser

StockEventHandler = Callable[[Session, "StockEvent"], None]


@dataclass(frozen=True)
class StockEvent:
    action: str
    target_id: str
    target_type: str = "TicketType"
    ticket_name: Optional[str] = None
    kiosk_id: Optional[str] = None
    actor: Optional[CurrentUser] = None
    details: dict = field(default_factory=dict)
    counter_before: Optional[int] = None
    counter_after: Optional[int] = None
    threshold: Optional[int] = None
    occurred_at: Optional[datetime] = None

    @property
    def touches_counter(self) -> bool:
        return self.counter_after is not None and self.counter_before is not None


@dataclass
class DispatchResult:
    handlers_run: int = 0
    failures: List[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class StockEventDispatcher:
    def __init__(self, handlers: Optional[List[StockEventHandler]] = None) -> None:
        self._handlers: List[StockEventHandler] = list(handlers or [])

    def subscribe(self, handler: StockEventHandler) -> None:
        self._handlers.append(handler)

    @property
    def handlers(self) -> List[StockEventHandler]:
        return list(self._handlers)

    def publish(self, db: Session, event: StockEvent) -> DispatchResult:
        result = DispatchResult()
        for handler in self._handlers:
            handler_name = getattr(handler, "__qualname__", repr(handler))
            try:
                handler(db, event)
                result.handlers_run += 1
            except Exception as e:
                logger.exception(
                    f"Stock event handler {handler_name} failed for "
                    f"{event.action} on {event.target_id}: {e}"
                )
                db.rollback()
                result.failures.append({"handler": handler_name, "error": str(e)})
        return result


def default_handlers() -> List[StockEventHandler]:
    from core.audit import record_audit_event
    from core.stock_notification import apply_stock_notification

    return [record_audit_event, apply_stock_notification]


def build_default_dispatcher() -> StockEventDispatcher:
    return StockEventDispatcher(handlers=default_handlers())


def event_details(**details: Any) -> dict:
    """Drop None values so audit details stay compact."""
    return {key: value for key, value in details.items() if value is not None}
