from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pytz import timezone

from core.log import logger
from schemas.auth import AuthorizationStatusEnum, CurrentUser
from settings import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY, TZ

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token/", auto_error=False)


def generate_token(
    user: CurrentUser, expire_minutes: Optional[int] = None
) -> str:
    """
    {
        "id": "seller-1",
        "name": "Dana",
        "role": "seller",
        "kiosk_id": "kiosk-1",
        "exp": 1641455971,
    }
    """
    minutes = ACCESS_TOKEN_EXPIRE_MINUTES if expire_minutes is None else expire_minutes
    expire = datetime.now() + timedelta(minutes=float(minutes))
    expire = expire.astimezone(timezone(TZ))
    payload = {
        "id": user.id,
        "name": user.name,
        "role": user.role,
        "kiosk_id": user.kiosk_id,
        "exp": expire,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def get_user_from_token(token: Optional[str]) -> Optional[CurrentUser]:
    if not token:
        return None
    try:
        payload = jwt.decode(jwt=token, key=SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info(f"Rejected token: {e}")
        return None

    if not payload.get("id"):
        return None
    return CurrentUser(
        id=str(payload["id"]),
        name=payload.get("name"),
        role=payload.get("role") or "seller",
        kiosk_id=payload.get("kiosk_id"),
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> Optional[CurrentUser]:
    return get_user_from_token(token)


def check_permissions(
    current_user: CurrentUser | None, roles: tuple
) -> AuthorizationStatusEnum:
    """Check if the current user has one of the required roles.
    Args:
        current_user (CurrentUser | None): The current authenticated user.
        roles (tuple): Roles allowed to access.
    Returns:
        AuthorizationStatusEnum: The authorization status.
    """
    if current_user is None:
        return AuthorizationStatusEnum.UNAUTHORIZED
    if current_user.role not in roles:
        return AuthorizationStatusEnum.FORBIDDEN
    return AuthorizationStatusEnum.PASSED


def check_kiosk_access(
    current_user: CurrentUser | None, kiosk_id: str
) -> AuthorizationStatusEnum:
    """Admins reach every kiosk, everyone else only their own."""
    if current_user is None:
        return AuthorizationStatusEnum.UNAUTHORIZED
    if current_user.is_admin or current_user.kiosk_id == kiosk_id:
        return AuthorizationStatusEnum.PASSED
    return AuthorizationStatusEnum.FORBIDDEN
