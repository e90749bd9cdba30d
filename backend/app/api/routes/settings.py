import json

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.db.session import get_db
from app.models.role import Role
from app.models.user import User
from app.schemas.settings import OrgSettingsUpdateRequest
from app.services.org_settings import REIMBURSEMENT_LIMITS_KEY, read_org_settings, set_setting_value
from app.services.rbac import available_permissions, parse_permissions


router = APIRouter()


@router.get("")
def org_settings(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("settings:view")),
) -> dict:
    return read_org_settings(db)


@router.put("")
def save_org_settings(
    payload: OrgSettingsUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("settings:write")),
) -> dict:
    if payload.org_name is not None:
        set_setting_value(db, "org_name", payload.org_name)
    if payload.currency is not None:
        set_setting_value(db, "currency", payload.currency.upper())
    if payload.timezone is not None:
        set_setting_value(db, "timezone", payload.timezone)
    if payload.reimbursement_limits is not None:
        limits = {category.value: str(limit) for category, limit in payload.reimbursement_limits.items()}
        set_setting_value(db, REIMBURSEMENT_LIMITS_KEY, json.dumps(limits))
    db.commit()

    log_action(db, current_user.id, "update", "settings", None, payload.model_dump(exclude_none=True))
    return read_org_settings(db)


@router.get("/roles")
def roles(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("settings:view")),
) -> list[dict]:
    role_rows = db.scalars(select(Role).order_by(Role.id.asc())).all()
    return [
        {
            "id": row.id,
            "name": row.name,
            "permissions": parse_permissions(row.permissions),
        }
        for row in role_rows
    ]


@router.get("/permissions/catalog")
def permissions_catalog(_: User = Depends(require_permission("settings:view"))) -> dict:
    return {"permissions": available_permissions()}
