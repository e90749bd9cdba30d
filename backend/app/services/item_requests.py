"""Procurement requests raised by employees and processed by managers.

    Draft -> Submitted -> Approved -> Procured -> Issued
                       -> Rejected

Requests linked to an inventory item move stock when they are procured
(inbound) and issued (outbound). Each of those steps can only happen once
for a request: the status is claimed with a conditional UPDATE before the
mutator runs, and the claim is committed together with the ledger row. Of two
interleaved callers only one claims the request; the other gets
``AlreadyProcessed``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AlreadyProcessed,
    InvalidStatusTransition,
    InvalidStockMovement,
    NotFound,
    PermissionDenied,
)
from app.core.logging_config import get_logger
from app.models.enums import MovementType, RequestStatus
from app.models.item_request import ItemRequest, ItemRequestPayment
from app.models.user import User
from app.schemas.item_requests import ItemRequestCreate, SettleRequest
from app.services.inventory import get_item
from app.services.rbac import is_employee
from app.services.stock_ledger import StockMutationResult, apply_stock_delta


logger = get_logger("item_requests")

ENTITY = "Item request"
SETTLEABLE = {
    RequestStatus.APPROVED.value,
    RequestStatus.PROCURED.value,
    RequestStatus.ISSUED.value,
}


def reference_for(request: ItemRequest) -> str:
    return f"item_request:{request.id}"


def get_request(db: Session, request_id: int) -> ItemRequest:
    request = db.scalar(select(ItemRequest).where(ItemRequest.id == request_id))
    if not request:
        raise NotFound(ENTITY, request_id)
    return request


def list_requests(db: Session, actor: User, status: str | None = None) -> list[ItemRequest]:
    query = select(ItemRequest)
    if is_employee(actor):
        query = query.where(ItemRequest.user_id == actor.id)
    if status:
        query = query.where(ItemRequest.status == status)
    return list(db.scalars(query.order_by(ItemRequest.id.desc())).all())


def create_request(db: Session, payload: ItemRequestCreate, actor: User) -> ItemRequest:
    if payload.inventory_item_id is not None:
        get_item(db, payload.inventory_item_id)

    request = ItemRequest(
        user_id=actor.id,
        title=payload.title,
        category=payload.category.value,
        quantity=payload.quantity,
        unit=payload.unit,
        description=payload.description,
        priority=payload.priority.value,
        needed_by=payload.needed_by,
        market_or_location=payload.market_or_location,
        attachment_url=payload.attachment_url,
        inventory_item_id=payload.inventory_item_id,
        status=(RequestStatus.SUBMITTED if payload.submit else RequestStatus.DRAFT).value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


def _require_status(request: ItemRequest, target: RequestStatus, *allowed: RequestStatus) -> None:
    if request.status not in {status.value for status in allowed}:
        raise InvalidStatusTransition(ENTITY, request.id, request.status, target.value)


def _claim_status(
    db: Session,
    request_id: int,
    target: RequestStatus,
    allowed: tuple[RequestStatus, ...],
    done: tuple[RequestStatus, ...],
    step: str,
    **values,
) -> ItemRequest:
    """Move a request to ``target`` only while it is still in one of ``allowed``.

    Check and write are a single UPDATE, so of two callers holding the same
    stale view exactly one claims the request. Nothing is committed here.
    """
    result = db.execute(
        update(ItemRequest)
        .where(ItemRequest.id == request_id)
        .where(ItemRequest.status.in_([status.value for status in allowed]))
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = db.scalar(select(ItemRequest.status).where(ItemRequest.id == request_id))
        if current is None:
            raise NotFound(ENTITY, request_id)
        if current in {status.value for status in done}:
            raise AlreadyProcessed(ENTITY, request_id, step)
        raise InvalidStatusTransition(ENTITY, request_id, current, target.value)

    request = get_request(db, request_id)
    db.refresh(request)
    return request


def submit_request(db: Session, request_id: int, actor: User) -> ItemRequest:
    request = get_request(db, request_id)
    if request.user_id != actor.id:
        raise PermissionDenied("submit another user's request")
    _require_status(request, RequestStatus.SUBMITTED, RequestStatus.DRAFT)
    request.status = RequestStatus.SUBMITTED.value
    db.commit()
    db.refresh(request)
    return request


def review_request(
    db: Session, request_id: int, actor: User, approve: bool, comment: str = ""
) -> ItemRequest:
    target = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    request = _claim_status(
        db,
        request_id,
        target,
        (RequestStatus.SUBMITTED,),
        (RequestStatus.APPROVED, RequestStatus.REJECTED),
        "review",
        manager_comment=comment or None,
        reviewed_by=actor.id,
    )
    db.commit()
    db.refresh(request)
    logger.info("item_request_reviewed", extra={"request_id": request.id, "status": request.status})
    return request


def _move_linked_stock(
    db: Session,
    request: ItemRequest,
    actor: User,
    movement_type: MovementType,
    expected_version: int | None,
) -> StockMutationResult | None:
    if request.inventory_item_id is None:
        return None
    if expected_version is None:
        db.rollback()
        raise InvalidStockMovement("item_version is required for requests linked to an inventory item")

    delta = request.quantity if movement_type is MovementType.INBOUND else -request.quantity
    return apply_stock_delta(
        db,
        item_id=request.inventory_item_id,
        expected_version=expected_version,
        delta=delta,
        movement_type=movement_type,
        reason=f"{request.title} ({request.status})",
        actor_id=actor.id,
        reference_id=reference_for(request),
        commit=False,
    )


def mark_procured(
    db: Session, request_id: int, actor: User, expected_version: int | None = None
) -> tuple[ItemRequest, StockMutationResult | None]:
    request = _claim_status(
        db,
        request_id,
        RequestStatus.PROCURED,
        (RequestStatus.APPROVED,),
        (RequestStatus.PROCURED, RequestStatus.ISSUED),
        "procurement",
    )
    mutation = _move_linked_stock(db, request, actor, MovementType.INBOUND, expected_version)
    db.commit()
    db.refresh(request)
    return request, mutation


def mark_issued(
    db: Session, request_id: int, actor: User, expected_version: int | None = None
) -> tuple[ItemRequest, StockMutationResult | None]:
    request = _claim_status(
        db,
        request_id,
        RequestStatus.ISSUED,
        (RequestStatus.APPROVED, RequestStatus.PROCURED),
        (RequestStatus.ISSUED,),
        "issue",
    )
    mutation = _move_linked_stock(db, request, actor, MovementType.OUTBOUND, expected_version)
    db.commit()
    db.refresh(request)
    return request, mutation


def settle_request(db: Session, request_id: int, payload: SettleRequest, actor: User) -> ItemRequest:
    request = get_request(db, request_id)
    now = datetime.now(timezone.utc)
    result = db.execute(
        update(ItemRequest)
        .where(ItemRequest.id == request.id)
        .where(ItemRequest.is_settled.is_(False))
        .where(ItemRequest.status.in_(SETTLEABLE))
        .values(
            is_settled=True,
            proof_of_payment_url=payload.receipt_url,
            proof_of_payment_remarks=payload.remarks,
            proof_uploaded_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.refresh(request)
        if request.is_settled:
            raise AlreadyProcessed(ENTITY, request.id, "settlement")
        raise InvalidStatusTransition(ENTITY, request.id, request.status, "Settled")

    db.add(
        ItemRequestPayment(
            item_request_id=request.id,
            amount=payload.amount,
            receipt_url=payload.receipt_url,
            remarks=payload.remarks,
            recorded_by=actor.id,
            recorded_at=now,
        )
    )
    db.commit()
    db.refresh(request)
    logger.info("item_request_settled", extra={"request_id": request.id, "amount": payload.amount})
    return request
