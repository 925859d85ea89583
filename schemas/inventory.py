from typing import Literal, Optional
from pydantic import BaseModel, Field

StockDestination = Literal["counter", "vault"]


class KioskStockUpdateRequest(BaseModel):
    counter: Optional[int] = None
    vault: Optional[int] = None
    is_opened: Optional[bool] = None


class StockQuantityRequest(BaseModel):
    quantity: int


class AddPackagesRequest(BaseModel):
    destination: StockDestination
    package_count: int


class OpenedFlagRequest(BaseModel):
    is_opened: bool


class ClearKioskResponse(BaseModel):
    kiosk_id: str
    ticket_types_updated: int = Field(ge=0)
    message: Optional[str] = None
