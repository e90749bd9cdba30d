from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.core.logging_config import LogContext
from app.db.session import get_db
from app.models.inventory_item import InventoryItem
from app.models.user import User
from app.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    StockAdjustRequest,
    StockTransactionRead,
)
from app.services import inventory as inventory_service
from app.services.stock_ledger import StockMutationResult, find_ledger_drift, list_transactions


router = APIRouter()


def serialize_item(item: InventoryItem, mutation: StockMutationResult | None = None) -> dict:
    data = InventoryItemRead.model_validate(item).model_dump()
    data["mutation"] = mutation.as_dict() if mutation else None
    return data


@router.get("")
def list_inventory(
    search: str = "",
    include_archived: bool = False,
    low_stock_only: bool = False,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:view")),
) -> list[dict]:
    items = inventory_service.list_items(
        db, search=search, include_archived=include_archived, low_stock_only=low_stock_only
    )
    return [serialize_item(item) for item in items]


@router.get("/ledger-drift")
def ledger_drift(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reports:view")),
) -> list[dict]:
    return find_ledger_drift(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    payload: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("inventory:write")),
) -> dict:
    item, mutation = inventory_service.create_item(db, payload, current_user.id)
    log_action(db, current_user.id, "create", "inventory_item", item.id, {"sku": item.sku, "quantity": payload.quantity})
    return serialize_item(item, mutation)


@router.get("/{item_id}")
def get_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:view")),
) -> dict:
    return serialize_item(inventory_service.get_item(db, item_id, include_archived=True))


@router.put("/{item_id}")
def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("inventory:write")),
) -> dict:
    with LogContext.bind(item_id=str(item_id)):
        item, mutation = inventory_service.update_item(db, item_id, payload, current_user.id)
    log_action(db, current_user.id, "update", "inventory_item", item.id, payload.model_dump(exclude_unset=True))
    return serialize_item(item, mutation)


@router.post("/{item_id}/adjust")
def adjust_inventory_item(
    item_id: int,
    payload: StockAdjustRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("inventory:write")),
) -> dict:
    with LogContext.bind(item_id=str(item_id)):
        mutation = inventory_service.adjust_stock(db, item_id, payload, current_user.id)
    log_action(
        db,
        current_user.id,
        "adjust",
        "inventory_item",
        item_id,
        {"movement_type": payload.movement_type, "quantity": payload.quantity, "new_quantity": mutation.new_quantity},
    )
    return mutation.as_dict()


@router.delete("/{item_id}")
def archive_inventory_item(
    item_id: int,
    item_version: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("inventory:write")),
) -> dict:
    with LogContext.bind(item_id=str(item_id)):
        item, mutation = inventory_service.archive_item(db, item_id, item_version, current_user.id)
    log_action(db, current_user.id, "archive", "inventory_item", item.id, {"sku": item.sku})
    return serialize_item(item, mutation)


@router.get("/{item_id}/transactions")
def item_transactions(
    item_id: int,
    limit: int = 200,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:view")),
) -> list[dict]:
    inventory_service.get_item(db, item_id, include_archived=True)
    rows = list_transactions(db, item_id, limit=min(max(limit, 1), 1000))
    return [StockTransactionRead.model_validate(row).model_dump() for row in rows]
