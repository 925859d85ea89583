from typing import Optional, Sequence
from sqlalchemy import select
from sqlalchemy.orm import Session
from core.helper import get_current_time_in_timezone
from models.AuditLog import AuditLog
from settings import TZ


def insert_audit_log(
    db: Session,
    action: str,
    actor_id: Optional[str] = None,
    actor_name: Optional[str] = None,
    target_id: Optional[str] = None,
    target_type: Optional[str] = None,
    details: Optional[dict] = None,
    kiosk_id: Optional[str] = None,
    is_commit: bool = True,
) -> AuditLog:
    audit_log = AuditLog(
        action=action,
        actor_id=actor_id,
        actor_name=actor_name,
        target_id=target_id,
        target_type=target_type,
        details=details,
        kiosk_id=kiosk_id,
        created_date=get_current_time_in_timezone(TZ),
    )
    db.add(audit_log)
    if is_commit:
        db.commit()
        db.refresh(audit_log)
    return audit_log


def get_audit_logs(
    db: Session,
    action: Optional[str] = None,
    target_id: Optional[str] = None,
    kiosk_id: Optional[str] = None,
    limit: Optional[int] = 100,
) -> Sequence[AuditLog]:
    query = select(AuditLog)
    if action is not None:
        query = query.where(AuditLog.action == action)
    if target_id is not None:
        query = query.where(AuditLog.target_id == target_id)
    if kiosk_id is not None:
        query = query.where(AuditLog.kiosk_id == kiosk_id)
    query = query.order_by(AuditLog.created_date.desc())
    if limit:
        query = query.limit(limit)
    return db.execute(query).scalars().all()
