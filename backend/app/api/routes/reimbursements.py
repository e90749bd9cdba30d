from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.db.session import get_db
from app.models.user import User
from app.schemas.item_requests import RejectRequest, ReviewRequest
from app.schemas.reimbursements import PaymentRequest, ReimbursementCreate, ReimbursementRead
from app.services import reimbursements as reimbursements_service


router = APIRouter()


@router.get("", response_model=list[ReimbursementRead])
def list_reimbursements(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("reimbursements:create")),
) -> list[ReimbursementRead]:
    rows = reimbursements_service.list_reimbursements(db, current_user, status=status_filter)
    return [ReimbursementRead.model_validate(row) for row in rows]


@router.post("", response_model=ReimbursementRead, status_code=status.HTTP_201_CREATED)
def submit_reimbursement(
    payload: ReimbursementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("reimbursements:create")),
) -> ReimbursementRead:
    row = reimbursements_service.submit_reimbursement(db, payload, current_user)
    log_action(db, current_user.id, "create", "reimbursement", row.id, {"category": row.category, "amount": row.amount})
    return ReimbursementRead.model_validate(row)


@router.post("/{reimbursement_id}/approve", response_model=ReimbursementRead)
def approve_reimbursement(
    reimbursement_id: int,
    payload: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("reimbursements:review")),
) -> ReimbursementRead:
    row = reimbursements_service.review_reimbursement(
        db, reimbursement_id, current_user, approve=True, comment=payload.comment
    )
    log_action(db, current_user.id, "approve", "reimbursement", row.id)
    return ReimbursementRead.model_validate(row)


@router.post("/{reimbursement_id}/reject", response_model=ReimbursementRead)
def reject_reimbursement(
    reimbursement_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("reimbursements:review")),
) -> ReimbursementRead:
    row = reimbursements_service.review_reimbursement(
        db, reimbursement_id, current_user, approve=False, comment=payload.reason
    )
    log_action(db, current_user.id, "reject", "reimbursement", row.id, {"reason": payload.reason})
    return ReimbursementRead.model_validate(row)


@router.post("/{reimbursement_id}/pay", response_model=ReimbursementRead)
def pay_reimbursement(
    reimbursement_id: int,
    payload: PaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("reimbursements:pay")),
) -> ReimbursementRead:
    row = reimbursements_service.mark_paid(db, reimbursement_id, current_user, payload.payment_reference)
    log_action(db, current_user.id, "pay", "reimbursement", row.id, {"payment_reference": payload.payment_reference})
    return ReimbursementRead.model_validate(row)
