"""Requests for items that are not in the catalog yet.

Approving a request can create the inventory item straight away; an approved
request can also be added to inventory later. Either way ``added_to_inventory``
is claimed with a conditional UPDATE before the item is created, and the
stock lands through the ledger (``ADJUSTMENT_CREATE``) in the same commit, so
a request is never added twice.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import AlreadyProcessed, InvalidStatusTransition, NotFound
from app.core.logging_config import get_logger
from app.models.enums import MovementType, RequestStatus
from app.models.inventory_item import InventoryItem
from app.models.new_item_request import NewItemRequest
from app.models.user import User
from app.schemas.new_item_requests import NewItemApproveRequest, NewItemRequestCreate
from app.services.rbac import is_employee
from app.services.sku import next_sku
from app.services.stock_ledger import StockMutationResult, apply_stock_delta


logger = get_logger("new_item_requests")

ENTITY = "New item request"


def get_request(db: Session, request_id: int) -> NewItemRequest:
    request = db.scalar(select(NewItemRequest).where(NewItemRequest.id == request_id))
    if not request:
        raise NotFound(ENTITY, request_id)
    return request


def list_requests(db: Session, actor: User, status: str | None = None) -> list[NewItemRequest]:
    query = select(NewItemRequest)
    if is_employee(actor):
        query = query.where(NewItemRequest.employee_id == actor.id)
    if status:
        query = query.where(NewItemRequest.status == status)
    return list(db.scalars(query.order_by(NewItemRequest.id.desc())).all())


def create_request(db: Session, payload: NewItemRequestCreate, actor: User) -> NewItemRequest:
    request = NewItemRequest(
        employee_id=actor.id,
        item_name=payload.item_name,
        category=payload.category.value,
        quantity=payload.quantity,
        unit=payload.unit,
        estimated_price_per_unit=payload.estimated_price_per_unit,
        needed_by=payload.needed_by,
        market_or_location=payload.market_or_location,
        reason=payload.reason,
        vendor_suggestion=payload.vendor_suggestion,
        attachment_url=payload.attachment_url,
        status=RequestStatus.SUBMITTED.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


def _claim_for_inventory(db: Session, request: NewItemRequest) -> None:
    """Flip ``added_to_inventory`` only if it is still unset on an approved request.

    Runs before any item is created. Of two callers holding the same stale
    request exactly one gets past this point.
    """
    request_id = request.id
    db.flush()
    result = db.execute(
        update(NewItemRequest)
        .where(NewItemRequest.id == request_id)
        .where(NewItemRequest.status == RequestStatus.APPROVED.value)
        .where(NewItemRequest.added_to_inventory.is_(False))
        .values(added_to_inventory=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        current = get_request(db, request_id)
        if current.added_to_inventory:
            raise AlreadyProcessed(ENTITY, request_id, "added to inventory")
        raise InvalidStatusTransition(ENTITY, request_id, current.status, "Added to inventory")
    db.refresh(request)


def _add_to_inventory(
    db: Session, request: NewItemRequest, actor: User, quantity: int | None = None
) -> StockMutationResult | None:
    _claim_for_inventory(db, request)
    if quantity is None:
        quantity = request.approved_quantity if request.approved_quantity is not None else request.quantity

    settings = get_settings()
    item = InventoryItem(
        sku=next_sku(db, request.category, request.item_name),
        name=request.item_name,
        unit=request.unit,
        category=request.category,
        quantity_on_hand=0,
        price_per_item=request.approved_unit_price or request.estimated_price_per_unit or Decimal("0"),
        reorder_level=settings.default_reorder_level,
        max_level=settings.default_max_level,
        item_version=0,
        created_by=actor.id,
    )
    db.add(item)
    db.flush()

    mutation = None
    if quantity > 0:
        mutation = apply_stock_delta(
            db,
            item_id=item.id,
            expected_version=0,
            delta=quantity,
            movement_type=MovementType.ADJUSTMENT_CREATE,
            reason=f"New item request approved: {request.item_name}",
            actor_id=actor.id,
            reference_id=f"new_item_request:{request.id}",
            commit=False,
        )
    request.inventory_item_id = item.id
    return mutation


def _claim_review(
    db: Session, request: NewItemRequest, target: RequestStatus, step: str, **values
) -> None:
    result = db.execute(
        update(NewItemRequest)
        .where(NewItemRequest.id == request.id)
        .where(NewItemRequest.status == RequestStatus.SUBMITTED.value)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(request)
    if result.rowcount != 1:
        if request.status == target.value:
            raise AlreadyProcessed(ENTITY, request.id, step)
        raise InvalidStatusTransition(ENTITY, request.id, request.status, target.value)


def approve_request(
    db: Session, request_id: int, payload: NewItemApproveRequest, actor: User
) -> tuple[NewItemRequest, StockMutationResult | None]:
    request = get_request(db, request_id)
    _claim_review(
        db,
        request,
        RequestStatus.APPROVED,
        "approval",
        reviewed_by=actor.id,
        admin_comment=payload.comment or None,
        approved_at=datetime.now(timezone.utc),
    )

    if payload.item_name:
        request.item_name = payload.item_name
    if payload.unit:
        request.unit = payload.unit
    if payload.category:
        request.category = payload.category.value
    request.approved_quantity = (
        payload.approved_quantity if payload.approved_quantity is not None else request.quantity
    )
    request.approved_unit_price = (
        payload.approved_unit_price
        if payload.approved_unit_price is not None
        else request.estimated_price_per_unit
    )

    mutation = None
    if payload.create_in_inventory:
        mutation = _add_to_inventory(db, request, actor, request.approved_quantity)

    db.commit()
    db.refresh(request)
    logger.info(
        "new_item_request_approved",
        extra={"request_id": request.id, "added_to_inventory": request.added_to_inventory},
    )
    return request, mutation


def add_to_inventory(
    db: Session, request_id: int, actor: User, quantity: int | None = None
) -> tuple[NewItemRequest, StockMutationResult | None]:
    request = get_request(db, request_id)
    mutation = _add_to_inventory(db, request, actor, quantity)
    db.commit()
    db.refresh(request)
    return request, mutation


def reject_request(db: Session, request_id: int, actor: User, reason: str) -> NewItemRequest:
    request = get_request(db, request_id)
    _claim_review(
        db,
        request,
        RequestStatus.REJECTED,
        "rejection",
        reviewed_by=actor.id,
        admin_comment=reason,
    )
    db.commit()
    db.refresh(request)
    return request

