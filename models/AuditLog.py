import datetime
import uuid
from typing import Optional
from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import mapped_column, Mapped
from models import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    action: Mapped[str] = mapped_column("action", String, nullable=False, index=True)
    actor_id: Mapped[Optional[str]] = mapped_column("actor_id", String, nullable=True)
    actor_name: Mapped[Optional[str]] = mapped_column(
        "actor_name", String, nullable=True
    )
    target_id: Mapped[Optional[str]] = mapped_column(
        "target_id", String, nullable=True, index=True
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        "target_type", String, nullable=True
    )
    details: Mapped[Optional[dict]] = mapped_column(
        "details", JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    kiosk_id: Mapped[Optional[str]] = mapped_column(
        "kiosk_id", String, nullable=True, index=True
    )
    created_date = mapped_column(
        "created_date",
        DateTime(timezone=True),
        default=lambda: datetime.datetime.now(datetime.timezone.utc),
    )
