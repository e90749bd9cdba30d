import json
from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import AlreadyProcessed, InvalidStatusTransition, LimitExceeded
from app.models.system_setting import SystemSetting
from app.schemas.reimbursements import ReimbursementCreate
from app.services import reimbursements as reimbursements_service
from app.services.org_settings import REIMBURSEMENT_LIMITS_KEY, reimbursement_limits


@pytest.fixture
def limits(db):
    db.add(SystemSetting(key=REIMBURSEMENT_LIMITS_KEY, value=json.dumps({"Food": "500", "Travel": 2500})))
    db.commit()


def claim(db, user, amount="120.00", category="Food"):
    payload = ReimbursementCreate(
        expense_date=date(2024, 3, 14),
        category=category,
        amount=Decimal(amount),
        bill_file_url="https://files/bill.jpg",
    )
    return reimbursements_service.submit_reimbursement(db, payload, user)


def test_submit_within_limit(db, employee, limits):
    row = claim(db, employee)

    assert row.status == "Submitted"
    assert row.expense_date == date(2024, 3, 14)
    assert row.amount == Decimal("120.00")


def test_submit_over_limit_is_refused(db, employee, limits):
    with pytest.raises(LimitExceeded) as excinfo:
        claim(db, employee, amount="500.01")

    assert excinfo.value.category == "Food"
    assert excinfo.value.limit == Decimal("500")
    assert reimbursements_service.list_reimbursements(db, employee) == []


def test_category_without_limit_is_unbounded(db, employee, limits):
    row = claim(db, employee, amount="99999", category="Misc")
    assert row.status == "Submitted"


def test_limits_ignore_malformed_setting(db):
    db.add(SystemSetting(key=REIMBURSEMENT_LIMITS_KEY, value="not json"))
    db.commit()

    assert reimbursement_limits(db) == {}


def test_approve_then_pay_once(db, employee, manager, admin):
    row = claim(db, employee)

    row = reimbursements_service.review_reimbursement(db, row.id, manager, approve=True)
    assert row.status == "Approved"

    row = reimbursements_service.mark_paid(db, row.id, admin, "UTR-2024-001")
    assert row.status == "Paid"
    assert row.payment_reference == "UTR-2024-001"

    with pytest.raises(AlreadyProcessed):
        reimbursements_service.mark_paid(db, row.id, admin, "UTR-2024-002")


def test_rejected_claim_cannot_be_paid(db, employee, manager, admin):
    row = claim(db, employee)
    reimbursements_service.review_reimbursement(db, row.id, manager, approve=False, comment="no bill")

    with pytest.raises(InvalidStatusTransition):
        reimbursements_service.mark_paid(db, row.id, admin, "UTR-1")
    with pytest.raises(AlreadyProcessed):
        reimbursements_service.review_reimbursement(db, row.id, manager, approve=True)


def test_listing_is_scoped_for_employees(db, employee, manager, make_user):
    mine = claim(db, employee)
    claim(db, make_user())

    assert [row.id for row in reimbursements_service.list_reimbursements(db, employee)] == [mine.id]
    assert len(reimbursements_service.list_reimbursements(db, manager)) == 2
    assert reimbursements_service.total_amount(
        reimbursements_service.list_reimbursements(db, manager)
    ) == Decimal("240.00")


def test_interleaved_payment_is_recorded_once(session_factory, db, employee, manager, admin):
    row = claim(db, employee)
    reimbursements_service.review_reimbursement(db, row.id, manager, approve=True)
    first = session_factory()
    second = session_factory()
    try:
        assert reimbursements_service.get_reimbursement(first, row.id).status == "Approved"
        assert reimbursements_service.get_reimbursement(second, row.id).status == "Approved"

        reimbursements_service.mark_paid(first, row.id, admin, "UTR-FIRST")
        with pytest.raises(AlreadyProcessed):
            reimbursements_service.mark_paid(second, row.id, admin, "UTR-SECOND")
    finally:
        first.close()
        second.close()

    db.expire_all()
    row = reimbursements_service.get_reimbursement(db, row.id)
    assert (row.status, row.payment_reference) == ("Paid", "UTR-FIRST")


def test_interleaved_reviews_apply_once(session_factory, db, employee, manager):
    row = claim(db, employee)
    first = session_factory()
    second = session_factory()
    try:
        assert reimbursements_service.get_reimbursement(first, row.id).status == "Submitted"
        assert reimbursements_service.get_reimbursement(second, row.id).status == "Submitted"

        reimbursements_service.review_reimbursement(first, row.id, manager, approve=True)
        with pytest.raises(AlreadyProcessed):
            reimbursements_service.review_reimbursement(second, row.id, manager, approve=False, comment="late")
    finally:
        first.close()
        second.close()

    db.expire_all()
    row = reimbursements_service.get_reimbursement(db, row.id)
    assert (row.status, row.manager_comment) == ("Approved", None)
