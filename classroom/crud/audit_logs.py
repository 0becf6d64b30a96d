import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from classroom.models.audit_log import AuditLogEntry
from classroom.models.profile import Profile

logger = logging.getLogger(__name__)


def record_audit_action(
    db: Session,
    admin_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLogEntry:
    entry = AuditLogEntry(
        admin_id=admin_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"Audit: admin={admin_id} action={action} resource={resource_type}:{resource_id}")
    return entry


def list_audit_logs(
    db: Session,
    limit: int = 100,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    search: Optional[str] = None,
) -> List[AuditLogEntry]:
    query = db.query(AuditLogEntry).options(joinedload(AuditLogEntry.admin))
    if action:
        query = query.filter(AuditLogEntry.action == action)
    if resource_type:
        query = query.filter(AuditLogEntry.resource_type == resource_type)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.outerjoin(Profile, AuditLogEntry.admin_id == Profile.id).filter(
            or_(
                AuditLogEntry.action.ilike(pattern),
                Profile.full_name.ilike(pattern),
                Profile.email.ilike(pattern),
            )
        )
    return query.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc()).limit(limit).all()


def list_audit_filters(db: Session) -> Dict[str, List[str]]:
    actions = [row[0] for row in db.query(AuditLogEntry.action).distinct().order_by(AuditLogEntry.action)]
    resource_types = [
        row[0] for row in db.query(AuditLogEntry.resource_type).distinct().order_by(AuditLogEntry.resource_type)
    ]
    return {"actions": actions, "resource_types": resource_types}
