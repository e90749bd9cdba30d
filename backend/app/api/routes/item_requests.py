from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.db.session import get_db
from app.models.item_request import ItemRequest
from app.models.user import User
from app.schemas.item_requests import ItemRequestCreate, ItemRequestRead, RejectRequest, ReviewRequest, SettleRequest
from app.services import item_requests as requests_service
from app.services.stock_ledger import StockMutationResult


router = APIRouter()


def serialize_request(request: ItemRequest, mutation: StockMutationResult | None = None) -> dict:
    data = ItemRequestRead.model_validate(request).model_dump()
    data["mutation"] = mutation.as_dict() if mutation else None
    return data


@router.get("")
def list_item_requests(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:create")),
) -> list[dict]:
    rows = requests_service.list_requests(db, current_user, status=status_filter)
    return [serialize_request(row) for row in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_item_request(
    payload: ItemRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:create")),
) -> dict:
    request = requests_service.create_request(db, payload, current_user)
    log_action(db, current_user.id, "create", "item_request", request.id, {"status": request.status})
    return serialize_request(request)


@router.post("/{request_id}/submit")
def submit_item_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:create")),
) -> dict:
    request = requests_service.submit_request(db, request_id, current_user)
    log_action(db, current_user.id, "submit", "item_request", request.id)
    return serialize_request(request)


@router.post("/{request_id}/approve")
def approve_item_request(
    request_id: int,
    payload: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:review")),
) -> dict:
    request = requests_service.review_request(db, request_id, current_user, approve=True, comment=payload.comment)
    log_action(db, current_user.id, "approve", "item_request", request.id, {"comment": payload.comment})
    return serialize_request(request)


@router.post("/{request_id}/reject")
def reject_item_request(
    request_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:review")),
) -> dict:
    request = requests_service.review_request(db, request_id, current_user, approve=False, comment=payload.reason)
    log_action(db, current_user.id, "reject", "item_request", request.id, {"reason": payload.reason})
    return serialize_request(request)


@router.post("/{request_id}/procure")
def procure_item_request(
    request_id: int,
    item_version: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:review")),
) -> dict:
    request, mutation = requests_service.mark_procured(db, request_id, current_user, expected_version=item_version)
    log_action(db, current_user.id, "procure", "item_request", request.id)
    return serialize_request(request, mutation)


@router.post("/{request_id}/issue")
def issue_item_request(
    request_id: int,
    item_version: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:review")),
) -> dict:
    request, mutation = requests_service.mark_issued(db, request_id, current_user, expected_version=item_version)
    log_action(db, current_user.id, "issue", "item_request", request.id)
    return serialize_request(request, mutation)


@router.post("/{request_id}/settle")
def settle_item_request(
    request_id: int,
    payload: SettleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("requests:settle")),
) -> dict:
    request = requests_service.settle_request(db, request_id, payload, current_user)
    log_action(db, current_user.id, "settle", "item_request", request.id, {"amount": payload.amount})
    return serialize_request(request)
