from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.session import get_db
from app.models.user import User
from app.services import reports as reports_service


router = APIRouter()


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("dashboard:view")),
) -> dict:
    return reports_service.dashboard(db, current_user)


@router.get("/inventory-valuation")
def inventory_valuation(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reports:view")),
) -> dict:
    return reports_service.inventory_valuation(db)


@router.get("/low-stock")
def low_stock(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:view")),
) -> list[dict]:
    return reports_service.low_stock(db)
