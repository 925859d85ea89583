from typing import Optional, Sequence
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from core.helper import get_current_time_in_timezone, parse_uuid
from core.log import logger
from models.TicketType import TicketType
from settings import TZ


def get_ticket_type_by_id(
    db: Session, id, refresh: bool = False
) -> Optional[TicketType]:
    ticket_type_id = parse_uuid(id)
    if ticket_type_id is None:
        return None
    query = select(TicketType).where(TicketType.id == ticket_type_id)
    if refresh:
        # overwrite whatever the identity map holds with the stored row
        query = query.execution_options(populate_existing=True)
    return db.execute(query).scalar()


def get_ticket_type_by_code(db: Session, code: str) -> Optional[TicketType]:
    query = select(TicketType).where(TicketType.code == code)
    return db.execute(query).scalars().first()


def get_ticket_types(
    db: Session,
    is_active: Optional[bool] = None,
    ticket_category: Optional[str] = None,
    search: Optional[str] = None,
) -> Sequence[TicketType]:
    query = select(TicketType)
    if is_active is not None:
        query = query.where(TicketType.is_active == is_active)
    if ticket_category is not None:
        query = query.where(TicketType.ticket_category == ticket_category)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(
                func.lower(TicketType.name).like(pattern),
                func.lower(TicketType.code).like(pattern),
                func.lower(TicketType.nickname).like(pattern),
            )
        )
    query = query.order_by(TicketType.name.asc(), TicketType.code.asc())
    return db.execute(query).scalars().all()


def get_ticket_type_names_by_category(db: Session, ticket_category: str) -> set:
    query = select(TicketType.name).where(TicketType.ticket_category == ticket_category)
    return set(db.execute(query).scalars().all())


def insert_ticket_type(
    db: Session,
    name: str,
    price: float,
    code: str,
    nickname: Optional[str] = None,
    min_threshold: int = 10,
    default_quantity_per_package: Optional[int] = None,
    is_active: bool = True,
    ticket_category: str = "custom",
    color: Optional[str] = None,
    image_url: Optional[str] = None,
    amount: Optional[dict] = None,
    amount_is_opened: Optional[dict] = None,
    is_commit: bool = True,
) -> TicketType:
    now = get_current_time_in_timezone(TZ)
    ticket_type = TicketType(
        name=name,
        nickname=nickname,
        price=price,
        code=code,
        min_threshold=min_threshold,
        default_quantity_per_package=default_quantity_per_package,
        is_active=is_active,
        ticket_category=ticket_category,
        color=color,
        image_url=image_url,
        amount=dict(amount or {}),
        amount_is_opened=dict(amount_is_opened or {}),
        created_date=now,
        updated_date=now,
    )
    db.add(ticket_type)
    if is_commit:
        db.commit()
        db.refresh(ticket_type)
        logger.info(f"Ticket type created with ID: {ticket_type.id}")
    return ticket_type


def delete_ticket_type(
    db: Session, ticket_type: TicketType, is_commit: bool = True
) -> None:
    logger.info(f"Deleting ticket type with ID: {ticket_type.id}")
    db.delete(ticket_type)
    if is_commit:
        db.commit()
