from typing import List, Literal, Optional
from fastapi import Query
from pydantic import BaseModel, Field

from core.amount_codec import KioskStock, read_kiosk_stock
from models.TicketType import TicketType
from settings import DEFAULT_MIN_THRESHOLD

TicketCategory = Literal["pais", "custom"]


class TicketTypeQuery(BaseModel):
    kiosk_id: Optional[str] = Query(None, description="Kiosk for the stock view")
    only_stocked: bool = Query(
        False, description="Only ticket types with an entry for the kiosk"
    )
    is_active: Optional[bool] = Query(None, description="Filter by active flag")
    search: Optional[str] = Query(None, description="Search ticket type by name")


class TicketTypeCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    code: Optional[str] = None
    nickname: Optional[str] = None
    min_threshold: int = Field(default=DEFAULT_MIN_THRESHOLD, ge=0)
    default_quantity_per_package: Optional[int] = Field(default=None, gt=0)
    is_active: bool = True
    ticket_category: TicketCategory = "custom"
    color: Optional[str] = None
    image_url: Optional[str] = None

    # optional single-kiosk seed
    kiosk_id: Optional[str] = None
    quantity_counter: int = Field(default=0, ge=0)
    quantity_vault: int = Field(default=0, ge=0)
    is_opened: bool = False


class TicketTypeUpdate(BaseModel):
    """Catalog-wide patch. price and code are accepted but never applied."""

    name: Optional[str] = Field(default=None, min_length=1)
    nickname: Optional[str] = None
    min_threshold: Optional[int] = Field(default=None, ge=0)
    default_quantity_per_package: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    ticket_category: Optional[TicketCategory] = None
    color: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[float] = None
    code: Optional[str] = None


class TicketTypeKioskView(BaseModel):
    id: str
    name: str
    nickname: Optional[str] = None
    price: float
    code: str
    min_threshold: int
    default_quantity_per_package: Optional[int] = None
    is_active: bool
    ticket_category: str
    color: Optional[str] = None
    image_url: Optional[str] = None
    kiosk_id: Optional[str] = None
    quantity_counter: int = 0
    quantity_vault: int = 0
    quantity: int = 0
    is_opened: bool = False
    has_inventory: bool = False
    amount: dict[str, str] = {}
    created_date: Optional[str] = None
    updated_date: Optional[str] = None


class TicketTypeListResponse(BaseModel):
    results: List[TicketTypeKioskView]


def ticket_type_view_from_model(
    ticket_type: TicketType, kiosk_id: Optional[str] = None
) -> TicketTypeKioskView:
    """Convert a TicketType row into its stock view for one kiosk."""
    entry = read_kiosk_stock(ticket_type.amount, kiosk_id)
    stock = entry or KioskStock()
    opened = bool((ticket_type.amount_is_opened or {}).get(kiosk_id, False))
    return TicketTypeKioskView(
        id=str(ticket_type.id),
        name=ticket_type.name,
        nickname=ticket_type.nickname,
        price=ticket_type.price,
        code=ticket_type.code,
        min_threshold=ticket_type.min_threshold,
        default_quantity_per_package=ticket_type.default_quantity_per_package,
        is_active=bool(ticket_type.is_active),
        ticket_category=ticket_type.ticket_category,
        color=ticket_type.color,
        image_url=ticket_type.image_url,
        kiosk_id=kiosk_id,
        quantity_counter=stock.counter,
        quantity_vault=stock.vault,
        quantity=stock.quantity,
        is_opened=opened if entry is not None else False,
        has_inventory=entry is not None,
        amount={
            key: KioskStock.from_raw(value).to_encoded()
            for key, value in (ticket_type.amount or {}).items()
        },
        created_date=(
            ticket_type.created_date.isoformat() if ticket_type.created_date else None
        ),
        updated_date=(
            ticket_type.updated_date.isoformat() if ticket_type.updated_date else None
        ),
    )
