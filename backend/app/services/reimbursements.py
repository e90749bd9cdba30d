from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyProcessed, InvalidStatusTransition, LimitExceeded, NotFound
from app.core.logging_config import get_logger
from app.models.enums import ReimbursementStatus
from app.models.reimbursement import Reimbursement
from app.models.user import User
from app.schemas.reimbursements import ReimbursementCreate
from app.services.org_settings import reimbursement_limits
from app.services.rbac import is_employee


logger = get_logger("reimbursements")

ENTITY = "Reimbursement"


def get_reimbursement(db: Session, reimbursement_id: int) -> Reimbursement:
    row = db.scalar(select(Reimbursement).where(Reimbursement.id == reimbursement_id))
    if not row:
        raise NotFound(ENTITY, reimbursement_id)
    return row


def list_reimbursements(db: Session, actor: User, status: str | None = None) -> list[Reimbursement]:
    query = select(Reimbursement)
    if is_employee(actor):
        query = query.where(Reimbursement.user_id == actor.id)
    if status:
        query = query.where(Reimbursement.status == status)
    return list(db.scalars(query.order_by(Reimbursement.id.desc())).all())


def submit_reimbursement(db: Session, payload: ReimbursementCreate, actor: User) -> Reimbursement:
    limit = reimbursement_limits(db).get(payload.category.value)
    if limit is not None and payload.amount > limit:
        raise LimitExceeded(payload.category.value, payload.amount, limit)

    row = Reimbursement(
        user_id=actor.id,
        expense_date=payload.expense_date or datetime.now(timezone.utc).date(),
        category=payload.category.value,
        amount=payload.amount,
        market_or_location=payload.market_or_location,
        notes=payload.notes,
        bill_file_url=payload.bill_file_url,
        status=ReimbursementStatus.SUBMITTED.value,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _claim_status(
    db: Session,
    row: Reimbursement,
    target: ReimbursementStatus,
    allowed: ReimbursementStatus,
    done: tuple[ReimbursementStatus, ...],
    step: str,
    **values,
) -> None:
    """Move ``row`` from ``allowed`` to ``target`` in one conditional UPDATE."""
    result = db.execute(
        update(Reimbursement)
        .where(Reimbursement.id == row.id)
        .where(Reimbursement.status == allowed.value)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(row)
    if result.rowcount != 1:
        if row.status in {status.value for status in done}:
            raise AlreadyProcessed(ENTITY, row.id, step)
        raise InvalidStatusTransition(ENTITY, row.id, row.status, target.value)


def review_reimbursement(
    db: Session, reimbursement_id: int, actor: User, approve: bool, comment: str = ""
) -> Reimbursement:
    row = get_reimbursement(db, reimbursement_id)
    target = ReimbursementStatus.APPROVED if approve else ReimbursementStatus.REJECTED
    _claim_status(
        db,
        row,
        target,
        ReimbursementStatus.SUBMITTED,
        (ReimbursementStatus.APPROVED, ReimbursementStatus.REJECTED, ReimbursementStatus.PAID),
        "review",
        manager_comment=comment or None,
        reviewed_by=actor.id,
    )
    db.commit()
    db.refresh(row)
    logger.info("reimbursement_reviewed", extra={"reimbursement_id": row.id, "status": row.status})
    return row


def mark_paid(db: Session, reimbursement_id: int, actor: User, payment_reference: str) -> Reimbursement:
    row = get_reimbursement(db, reimbursement_id)
    _claim_status(
        db,
        row,
        ReimbursementStatus.PAID,
        ReimbursementStatus.APPROVED,
        (ReimbursementStatus.PAID,),
        "payment",
        payment_reference=payment_reference,
    )
    db.commit()
    db.refresh(row)
    logger.info("reimbursement_paid", extra={"reimbursement_id": row.id, "paid_by": actor.id})
    return row



def total_amount(rows: list[Reimbursement]) -> Decimal:
    return sum((Decimal(str(row.amount)) for row in rows), Decimal("0"))
