from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory_item import InventoryItem
from app.models.item_request import ItemRequest
from app.models.new_item_request import NewItemRequest
from app.models.reimbursement import Reimbursement
from app.models.user import User
from app.services.inventory import inventory_value, list_items
from app.services.rbac import is_employee


def _count_by_status(db: Session, model, owner_column, actor: User) -> dict[str, int]:
    query = select(model.status, func.count(model.id)).group_by(model.status)
    if is_employee(actor):
        query = query.where(owner_column == actor.id)
    return {status: int(count) for status, count in db.execute(query).all()}


def dashboard(db: Session, actor: User) -> dict:
    items = list_items(db)
    low_stock = [item for item in items if item.is_low_stock]

    reimbursement_total = select(func.coalesce(func.sum(Reimbursement.amount), 0))
    if is_employee(actor):
        reimbursement_total = reimbursement_total.where(Reimbursement.user_id == actor.id)

    return {
        "inventory_items": len(items),
        "low_stock_items": len(low_stock),
        "inventory_value": inventory_value(items),
        "item_requests": _count_by_status(db, ItemRequest, ItemRequest.user_id, actor),
        "new_item_requests": _count_by_status(db, NewItemRequest, NewItemRequest.employee_id, actor),
        "reimbursements": _count_by_status(db, Reimbursement, Reimbursement.user_id, actor),
        "reimbursement_amount": Decimal(str(db.scalar(reimbursement_total) or 0)),
    }


def inventory_valuation(db: Session) -> dict:
    items = list_items(db)
    return {
        "items": [
            {
                "id": item.id,
                "sku": item.sku,
                "name": item.name,
                "quantity_on_hand": item.quantity_on_hand,
                "price_per_item": item.price_per_item,
                "total_value": item.total_value,
            }
            for item in items
        ],
        "total_value": inventory_value(items),
    }


def low_stock(db: Session) -> list[dict]:
    return [
        {
            "id": item.id,
            "sku": item.sku,
            "name": item.name,
            "quantity_on_hand": item.quantity_on_hand,
            "reorder_level": item.reorder_level,
            "max_level": item.max_level,
            "suggested_order": max(item.max_level - item.quantity_on_hand, 0),
        }
        for item in list_items(db, low_stock_only=True)
    ]
