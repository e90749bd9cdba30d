import json

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.logging_config import get_logger
from app.core.security import hash_password
from app.models.enums import AppRole
from app.models.role import Role
from app.models.system_setting import SystemSetting
from app.models.user import User
from app.services.org_settings import REIMBURSEMENT_LIMITS_KEY, default_settings
from app.services.rbac import ROLE_PERMISSIONS, serialize_permissions


logger = get_logger("seed")

DEFAULT_REIMBURSEMENT_LIMITS = {"Travel": "5000", "Food": "1500", "Stationery": "2000", "Misc": "1000"}


def seed_initial_data(db: Session) -> None:
    settings = get_settings()

    existing_roles = {role.name for role in db.scalars(select(Role)).all()}
    for role_name in ROLE_PERMISSIONS:
        if role_name not in existing_roles:
            db.add(Role(name=role_name, permissions=serialize_permissions(role_name)))
    db.commit()

    user_count = db.query(User).count()
    if user_count == 0:
        admin_role = db.scalar(select(Role).where(Role.name == AppRole.ADMIN.value))
        db.add(
            User(
                email=settings.bootstrap_admin_email.lower(),
                name="Administrator",
                username="admin",
                hashed_password=hash_password(settings.bootstrap_admin_password),
                role_id=admin_role.id,
                designation="Administrator",
            )
        )
        db.commit()
        logger.info("bootstrap_admin_created", extra={"email": settings.bootstrap_admin_email})

    defaults = default_settings()
    defaults[REIMBURSEMENT_LIMITS_KEY] = json.dumps(DEFAULT_REIMBURSEMENT_LIMITS)
    for key, value in defaults.items():
        row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
        if not row:
            db.add(SystemSetting(key=key, value=value))
    db.commit()
