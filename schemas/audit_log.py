from typing import Any, List, Optional
from fastapi import Query
from pydantic import BaseModel

from models.AuditLog import AuditLog


class AuditLogQuery(BaseModel):
    action: Optional[str] = Query(None, description="Filter by action")
    target_id: Optional[str] = Query(None, description="Filter by target id")
    kiosk_id: Optional[str] = Query(None, description="Filter by kiosk")
    limit: int = Query(100, ge=1, le=1000)


class AuditLogResponseItem(BaseModel):
    id: str
    action: str
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    target_id: Optional[str] = None
    target_type: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    kiosk_id: Optional[str] = None
    created_date: Optional[str] = None


class AuditLogListResponse(BaseModel):
    results: List[AuditLogResponseItem]


def audit_log_response_item_from_model(audit_log: AuditLog) -> AuditLogResponseItem:
    return AuditLogResponseItem(
        id=str(audit_log.id),
        action=audit_log.action,
        actor_id=audit_log.actor_id,
        actor_name=audit_log.actor_name,
        target_id=audit_log.target_id,
        target_type=audit_log.target_type,
        details=audit_log.details,
        kiosk_id=audit_log.kiosk_id,
        created_date=(
            audit_log.created_date.isoformat() if audit_log.created_date else None
        ),
    )
