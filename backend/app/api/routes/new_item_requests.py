from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.db.session import get_db
from app.models.new_item_request import NewItemRequest
from app.models.user import User
from app.schemas.item_requests import RejectRequest
from app.schemas.new_item_requests import (
    AddToInventoryRequest,
    NewItemApproveRequest,
    NewItemRequestCreate,
    NewItemRequestRead,
)
from app.services import new_item_requests as new_items_service
from app.services.stock_ledger import StockMutationResult


router = APIRouter()


def serialize_request(request: NewItemRequest, mutation: StockMutationResult | None = None) -> dict:
    data = NewItemRequestRead.model_validate(request).model_dump()
    data["mutation"] = mutation.as_dict() if mutation else None
    return data


@router.get("")
def list_new_item_requests(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("new_items:create")),
) -> list[dict]:
    rows = new_items_service.list_requests(db, current_user, status=status_filter)
    return [serialize_request(row) for row in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_new_item_request(
    payload: NewItemRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("new_items:create")),
) -> dict:
    request = new_items_service.create_request(db, payload, current_user)
    log_action(db, current_user.id, "create", "new_item_request", request.id, {"item_name": request.item_name})
    return serialize_request(request)


@router.post("/{request_id}/approve")
def approve_new_item_request(
    request_id: int,
    payload: NewItemApproveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("new_items:review")),
) -> dict:
    request, mutation = new_items_service.approve_request(db, request_id, payload, current_user)
    log_action(
        db,
        current_user.id,
        "approve",
        "new_item_request",
        request.id,
        {"added_to_inventory": request.added_to_inventory, "inventory_item_id": request.inventory_item_id},
    )
    return serialize_request(request, mutation)


@router.post("/{request_id}/reject")
def reject_new_item_request(
    request_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("new_items:review")),
) -> dict:
    request = new_items_service.reject_request(db, request_id, current_user, payload.reason)
    log_action(db, current_user.id, "reject", "new_item_request", request.id, {"reason": payload.reason})
    return serialize_request(request)


@router.post("/{request_id}/add-to-inventory")
def add_new_item_to_inventory(
    request_id: int,
    payload: AddToInventoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("new_items:review")),
) -> dict:
    request, mutation = new_items_service.add_to_inventory(db, request_id, current_user, payload.quantity)
    log_action(
        db, current_user.id, "add_to_inventory", "new_item_request", request.id, {"inventory_item_id": request.inventory_item_id}
    )
    return serialize_request(request, mutation)
