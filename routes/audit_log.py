from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.responses import Ok, authorization_response, common_response
from core.security import check_permissions, get_current_user
from models import get_db_sync
from repository.audit_log import get_audit_logs
from schemas.audit_log import (
    AuditLogListResponse,
    AuditLogQuery,
    audit_log_response_item_from_model,
)
from schemas.auth import ADMIN_ROLE, CurrentUser
from schemas.common import ForbiddenResponse, UnauthorizedResponse

router = APIRouter(prefix="/audit-log", tags=["Audit Log"])


@router.get(
    "/",
    responses={
        "200": {"model": AuditLogListResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
    },
)
def list_audit_logs(
    query: AuditLogQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: Optional[CurrentUser] = Depends(get_current_user),
):
    failed = authorization_response(check_permissions(current_user, (ADMIN_ROLE,)))
    if failed is not None:
        return failed
    audit_logs = get_audit_logs(
        db=db,
        action=query.action,
        target_id=query.target_id,
        kiosk_id=query.kiosk_id,
        limit=query.limit,
    )
    return common_response(
        Ok(
            data=AuditLogListResponse(
                results=[audit_log_response_item_from_model(a) for a in audit_logs]
            ).model_dump()
        )
    )
