import datetime
import uuid
from typing import Optional
from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import mapped_column, Mapped
from models import Base

PAIS_CATEGORY = "pais"
CUSTOM_CATEGORY = "custom"
TICKET_CATEGORIES = (PAIS_CATEGORY, CUSTOM_CATEGORY)

DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class TicketType(Base):
    __tablename__ = "ticket_type"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column("name", String, nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column("nickname", String, nullable=True)
    price: Mapped[float] = mapped_column("price", Float, nullable=False)
    code: Mapped[str] = mapped_column(
        "code", String, unique=True, index=True, nullable=False
    )
    min_threshold: Mapped[int] = mapped_column(
        "min_threshold", Integer, nullable=False, default=10
    )
    default_quantity_per_package: Mapped[Optional[int]] = mapped_column(
        "default_quantity_per_package", Integer, nullable=True
    )
    is_active: Mapped[bool] = mapped_column("is_active", Boolean, default=True)
    ticket_category: Mapped[str] = mapped_column(
        "ticket_category", String, nullable=False, default=CUSTOM_CATEGORY
    )
    color: Mapped[Optional[str]] = mapped_column("color", String, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column("image_url", String, nullable=True)

    # kiosk_id -> {"counter": int, "vault": int}
    amount: Mapped[dict] = mapped_column(
        "amount", DocumentJSON, nullable=False, default=dict
    )
    # kiosk_id -> bool, same keys as amount
    amount_is_opened: Mapped[dict] = mapped_column(
        "amount_is_opened", DocumentJSON, nullable=False, default=dict
    )

    created_date = mapped_column(
        "created_date", DateTime(timezone=True), default=_utcnow
    )
    updated_date = mapped_column(
        "updated_date", DateTime(timezone=True), default=_utcnow
    )
    version_id: Mapped[int] = mapped_column("version_id", Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}
