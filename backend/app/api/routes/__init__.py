from fastapi import APIRouter

from app.api.routes import (
    audit,
    auth,
    inventory,
    item_requests,
    new_item_requests,
    reimbursements,
    reports,
    settings,
    users,
    vendors,
)


api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(item_requests.router, prefix="/item-requests", tags=["Item requests"])
api_router.include_router(new_item_requests.router, prefix="/new-item-requests", tags=["New item requests"])
api_router.include_router(reimbursements.router, prefix="/reimbursements", tags=["Reimbursements"])
api_router.include_router(vendors.router, prefix="/vendors", tags=["Vendors"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["Audit"])
