import json
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.system_setting import SystemSetting


REIMBURSEMENT_LIMITS_KEY = "reimbursement_limits_json"


def default_settings() -> dict[str, str]:
    settings = get_settings()
    return {
        "org_name": settings.org_name,
        "currency": settings.default_currency,
        "timezone": settings.default_timezone,
        REIMBURSEMENT_LIMITS_KEY: "{}",
    }


def get_setting_value(db: Session, key: str, default: str = "") -> str:
    row = db.scalar(select(SystemSetting).where(SystemSetting.key == key))
    return row.value if row else default


def set_setting_value(db: Session, key: str, value: str) -> None:
    row = db.scalar(select(SystemSetting).where(SystemSetting.key == key))
    if row:
        row.value = value
    else:
        db.add(SystemSetting(key=key, value=value))


def reimbursement_limits(db: Session) -> dict[str, Decimal]:
    """Per-category claim ceilings. Categories without an entry are unlimited."""
    raw = get_setting_value(db, REIMBURSEMENT_LIMITS_KEY, "{}")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}

    limits: dict[str, Decimal] = {}
    for category, value in parsed.items():
        try:
            limits[str(category)] = Decimal(str(value))
        except InvalidOperation:
            continue
    return limits


def read_org_settings(db: Session) -> dict:
    defaults = default_settings()
    return {
        "org_name": get_setting_value(db, "org_name", defaults["org_name"]),
        "currency": get_setting_value(db, "currency", defaults["currency"]),
        "timezone": get_setting_value(db, "timezone", defaults["timezone"]),
        "reimbursement_limits": {key: str(value) for key, value in reimbursement_limits(db).items()},
    }
