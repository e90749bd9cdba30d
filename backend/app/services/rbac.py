from __future__ import annotations

import json
from typing import TYPE_CHECKING

from app.models.enums import AppRole

if TYPE_CHECKING:
    from app.models.user import User


ROLE_PERMISSIONS: dict[str, list[str]] = {
    AppRole.ADMIN.value: [
        "dashboard:view",
        "inventory:view",
        "inventory:write",
        "requests:create",
        "requests:review",
        "requests:settle",
        "new_items:create",
        "new_items:review",
        "reimbursements:create",
        "reimbursements:review",
        "reimbursements:pay",
        "vendors:view",
        "vendors:write",
        "reports:view",
        "users:manage",
        "settings:view",
        "settings:write",
        "audit:view",
    ],
    AppRole.MANAGER.value: [
        "dashboard:view",
        "inventory:view",
        "inventory:write",
        "requests:create",
        "requests:review",
        "requests:settle",
        "new_items:create",
        "reimbursements:create",
        "reimbursements:review",
        "vendors:view",
        "vendors:write",
        "reports:view",
        "settings:view",
    ],
    AppRole.EMPLOYEE.value: [
        "dashboard:view",
        "inventory:view",
        "requests:create",
        "new_items:create",
        "reimbursements:create",
        "vendors:view",
    ],
}


def available_permissions() -> list[str]:
    catalog: set[str] = set()
    for perms in ROLE_PERMISSIONS.values():
        catalog.update(perms)
    return sorted(catalog)


def serialize_permissions(role_name: str) -> str:
    return json.dumps(ROLE_PERMISSIONS.get(role_name, []))


def parse_permissions(permissions_raw: str) -> list[str]:
    try:
        permissions = json.loads(permissions_raw)
    except json.JSONDecodeError:
        return []
    return permissions if isinstance(permissions, list) else []


def has_permission(permissions_raw: str, permission: str) -> bool:
    return permission in parse_permissions(permissions_raw)


def is_employee(user: User) -> bool:
    """Employees only ever see their own requests and claims."""
    return user.role_name == AppRole.EMPLOYEE.value
