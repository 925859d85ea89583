import datetime
import uuid
from enum import Enum
from typing import Optional
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import mapped_column, Mapped
from models import Base
from models.TicketType import TicketType


class NotificationType(str, Enum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


STOCK_NOTIFICATION_TYPES = (
    NotificationType.LOW_STOCK.value,
    NotificationType.OUT_OF_STOCK.value,
)


class Notification(Base):
    __tablename__ = "notification"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    ticket_type_id: Mapped[uuid.UUID] = mapped_column(
        "ticket_type_id",
        ForeignKey(TicketType.__table__.c.id, ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticket_name: Mapped[str] = mapped_column("ticket_name", String, nullable=False)
    kiosk_id: Mapped[Optional[str]] = mapped_column("kiosk_id", String, nullable=True)
    notification_type: Mapped[str] = mapped_column(
        "notification_type", String, nullable=False
    )
    current_quantity: Mapped[int] = mapped_column(
        "current_quantity", Integer, nullable=False, default=0
    )
    threshold: Mapped[int] = mapped_column("threshold", Integer, nullable=False)
    is_read: Mapped[bool] = mapped_column("is_read", Boolean, default=False)
    created_date = mapped_column(
        "created_date",
        DateTime(timezone=True),
        default=lambda: datetime.datetime.now(datetime.timezone.utc),
    )
    updated_date = mapped_column(
        "updated_date",
        DateTime(timezone=True),
        default=lambda: datetime.datetime.now(datetime.timezone.utc),
    )
