from enum import Enum
from typing import Optional
from pydantic import BaseModel

ADMIN_ROLE = "admin"
OWNER_ROLE = "owner"
SELLER_ROLE = "seller"
USER_ROLES = (ADMIN_ROLE, OWNER_ROLE, SELLER_ROLE)


class AuthorizationStatusEnum(str, Enum):
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    PASSED = "Passed"


class CurrentUser(BaseModel):
    id: str
    name: Optional[str] = None
    role: str = SELLER_ROLE
    kiosk_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class TokenRequest(BaseModel):
    id: str
    name: Optional[str] = None
    role: str = SELLER_ROLE
    kiosk_id: Optional[str] = None
