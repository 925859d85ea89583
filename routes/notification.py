from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.log import logger
from core.responses import (
    NotFound,
    Ok,
    authorization_response,
    common_response,
)
from core.security import check_permissions, get_current_user
from models import get_db_sync
from repository import notification as notificationRepo
from schemas.auth import USER_ROLES, CurrentUser
from schemas.common import NotFoundResponse, UnauthorizedResponse
from schemas.notification import (
    MarkReadResponse,
    NotificationListResponse,
    NotificationQuery,
    NotificationResponseItem,
    notification_response_item_from_model,
)

router = APIRouter(prefix="/notification", tags=["Notification"])


def _scoped_kiosk(current_user: CurrentUser, kiosk_id: Optional[str]) -> Optional[str]:
    # non-admin users only ever see their own kiosk
    if current_user.is_admin or current_user.kiosk_id is None:
        return kiosk_id
    return current_user.kiosk_id


@router.get(
    "/",
    responses={
        "200": {"model": NotificationListResponse},
        "401": {"model": UnauthorizedResponse},
    },
)
def list_notifications(
    query: NotificationQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, USER_ROLES))
    if failed is not None:
        return failed
    notifications = notificationRepo.get_notifications(
        db=db,
        is_read=query.is_read,
        ticket_type_id=query.ticket_type_id,
        kiosk_id=_scoped_kiosk(current_user, query.kiosk_id),
        notification_type=query.notification_type,
    )
    return common_response(
        Ok(
            data=NotificationListResponse(
                results=[notification_response_item_from_model(n) for n in notifications]
            ).model_dump()
        )
    )


@router.put(
    "/read-all",
    responses={
        "200": {"model": MarkReadResponse},
        "401": {"model": UnauthorizedResponse},
    },
)
def mark_all_notifications_read(
    kiosk_id: Optional[str] = None,
    db: Session = Depends(get_db_sync),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, USER_ROLES))
    if failed is not None:
        return failed
    updated = notificationRepo.mark_all_notifications_read(
        db=db, kiosk_id=_scoped_kiosk(current_user, kiosk_id)
    )
    logger.info(f"User {current_user.id} marked {updated} notifications read")
    return common_response(Ok(data=MarkReadResponse(updated=updated).model_dump()))


@router.put(
    "/{notification_id}/read",
    responses={
        "200": {"model": NotificationResponseItem},
        "401": {"model": UnauthorizedResponse},
        "404": {"model": NotFoundResponse},
    },
)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db_sync),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, USER_ROLES))
    if failed is not None:
        return failed
    notification = notificationRepo.get_notification_by_id(db=db, id=notification_id)
    if notification is None:
        return common_response(NotFound(message="Notification not found"))
    notificationRepo.mark_notifications_read(db=db, notifications=[notification])
    db.refresh(notification)
    return common_response(
        Ok(data=notification_response_item_from_model(notification).model_dump())
    )
