from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.session import get_db
from app.models.audit import AuditLog
from app.models.user import User


router = APIRouter()


@router.get("")
def list_audit_logs(
    entity: str | None = None,
    entity_id: str | None = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("audit:view")),
) -> list[dict]:
    query = select(AuditLog)
    if entity:
        query = query.where(AuditLog.entity == entity)
    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)
    rows = db.scalars(query.order_by(AuditLog.id.desc()).limit(min(max(limit, 1), 1000))).all()
    return [
        {
            "id": row.id,
            "actor_user_id": row.actor_user_id,
            "action": row.action,
            "entity": row.entity,
            "entity_id": row.entity_id,
            "changes": row.changes_json,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]
