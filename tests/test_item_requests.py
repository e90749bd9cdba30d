from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    AlreadyProcessed,
    InvalidStatusTransition,
    InvalidStockMovement,
    PermissionDenied,
    VersionConflict,
)
from app.models.item_request import ItemRequestPayment
from app.models.stock_transaction import StockTransaction
from app.schemas.item_requests import ItemRequestCreate, SettleRequest
from app.services import item_requests as requests_service
from app.services.inventory import get_item
from app.services.stock_ledger import apply_stock_delta, ledger_sum


def new_request(db, user, item=None, submit=True, quantity=4):
    payload = ItemRequestCreate(
        title="Printer paper",
        category="Stationery",
        quantity=quantity,
        inventory_item_id=item.id if item else None,
        submit=submit,
    )
    return requests_service.create_request(db, payload, user)


def approved(db, employee, manager, item=None, quantity=4):
    request = new_request(db, employee, item, quantity=quantity)
    return requests_service.review_request(db, request.id, manager, approve=True, comment="ok")


def stock(db, item, quantity, actor):
    apply_stock_delta(
        db,
        item_id=item.id,
        expected_version=item.item_version,
        delta=quantity,
        movement_type="INBOUND",
        reason="opening stock",
        actor_id=actor.id,
    )


def test_draft_then_submit_by_owner(db, employee):
    request = new_request(db, employee, submit=False)
    assert request.status == "Draft"

    request = requests_service.submit_request(db, request.id, employee)
    assert request.status == "Submitted"


def test_only_owner_may_submit(db, employee, make_user):
    other = make_user()
    request = new_request(db, employee, submit=False)

    with pytest.raises(PermissionDenied):
        requests_service.submit_request(db, request.id, other)


def test_review_is_applied_once(db, employee, manager):
    request = approved(db, employee, manager)
    assert request.status == "Approved"
    assert request.reviewed_by == manager.id

    with pytest.raises(AlreadyProcessed):
        requests_service.review_request(db, request.id, manager, approve=False, comment="changed mind")


def test_draft_cannot_be_approved(db, employee, manager):
    request = new_request(db, employee, submit=False)

    with pytest.raises(InvalidStatusTransition):
        requests_service.review_request(db, request.id, manager, approve=True)


def test_procure_adds_linked_stock_once(db, employee, manager, make_item):
    item = make_item()
    request = approved(db, employee, manager, item, quantity=6)

    request, mutation = requests_service.mark_procured(db, request.id, manager, expected_version=0)

    assert request.status == "Procured"
    assert mutation.new_quantity == 6
    rows = db.scalars(
        select(StockTransaction).where(StockTransaction.reference == f"item_request:{request.id}")
    ).all()
    assert [(row.type, row.quantity) for row in rows] == [("INBOUND", 6)]

    with pytest.raises(AlreadyProcessed):
        requests_service.mark_procured(db, request.id, manager, expected_version=1)
    assert ledger_sum(db, item.id) == 6


def test_issue_removes_linked_stock_once(db, admin, employee, manager, make_item):
    item = make_item()
    stock(db, item, 10, admin)
    request = approved(db, employee, manager, item, quantity=3)

    request, mutation = requests_service.mark_issued(db, request.id, manager, expected_version=1)

    assert request.status == "Issued"
    assert mutation.new_quantity == 7
    with pytest.raises(AlreadyProcessed):
        requests_service.mark_issued(db, request.id, manager, expected_version=2)
    assert get_item(db, item.id).quantity_on_hand == 7


def test_issue_with_stale_version_keeps_status(db, admin, employee, manager, make_item):
    item = make_item()
    stock(db, item, 10, admin)
    request = approved(db, employee, manager, item, quantity=3)

    with pytest.raises(VersionConflict):
        requests_service.mark_issued(db, request.id, manager, expected_version=0)

    assert requests_service.get_request(db, request.id).status == "Approved"
    assert get_item(db, item.id).quantity_on_hand == 10


def test_unlinked_request_moves_no_stock(db, employee, manager):
    request = approved(db, employee, manager)

    request, mutation = requests_service.mark_issued(db, request.id, manager)

    assert mutation is None
    assert request.status == "Issued"


def test_settle_once(db, employee, manager):
    request = approved(db, employee, manager)

    request = requests_service.settle_request(
        db, request.id, SettleRequest(amount=Decimal("450.00"), receipt_url="https://files/r.pdf"), manager
    )

    assert request.is_settled is True
    assert request.proof_of_payment_url == "https://files/r.pdf"
    payment = db.scalar(select(ItemRequestPayment).where(ItemRequestPayment.item_request_id == request.id))
    assert payment.amount == Decimal("450.00")

    with pytest.raises(AlreadyProcessed):
        requests_service.settle_request(db, request.id, SettleRequest(amount=Decimal("1")), manager)


def test_unapproved_request_cannot_be_settled(db, employee, manager):
    request = new_request(db, employee)

    with pytest.raises(InvalidStatusTransition):
        requests_service.settle_request(db, request.id, SettleRequest(amount=Decimal("10")), manager)


def test_employees_only_list_their_own(db, employee, manager, make_user):
    other = make_user()
    mine = new_request(db, employee)
    theirs = new_request(db, other)

    assert [row.id for row in requests_service.list_requests(db, employee)] == [mine.id]
    assert {row.id for row in requests_service.list_requests(db, manager)} == {mine.id, theirs.id}


def test_linked_procurement_requires_item_version(db, employee, manager, make_item):
    item = make_item()
    request = approved(db, employee, manager, item, quantity=2)

    with pytest.raises(InvalidStockMovement):
        requests_service.mark_procured(db, request.id, manager)

    assert requests_service.get_request(db, request.id).status == "Approved"
    assert ledger_sum(db, item.id) == 0


def test_interleaved_procurement_applies_stock_once(session_factory, db, employee, manager, make_item):
    item = make_item()
    request = approved(db, employee, manager, item, quantity=6)
    first = session_factory()
    second = session_factory()
    try:
        # both callers see the request as Approved before either writes
        assert requests_service.get_request(first, request.id).status == "Approved"
        assert requests_service.get_request(second, request.id).status == "Approved"

        requests_service.mark_procured(first, request.id, manager, expected_version=0)
        with pytest.raises(AlreadyProcessed):
            requests_service.mark_procured(second, request.id, manager, expected_version=1)
    finally:
        first.close()
        second.close()

    db.expire_all()
    assert ledger_sum(db, item.id) == 6
    assert get_item(db, item.id).quantity_on_hand == 6
    assert requests_service.get_request(db, request.id).status == "Procured"


def test_interleaved_issue_removes_stock_once(session_factory, db, admin, employee, manager, make_item):
    item = make_item()
    stock(db, item, 10, admin)
    request = approved(db, employee, manager, item, quantity=3)
    first = session_factory()
    second = session_factory()
    try:
        assert requests_service.get_request(first, request.id).status == "Approved"
        assert requests_service.get_request(second, request.id).status == "Approved"

        requests_service.mark_issued(first, request.id, manager, expected_version=1)
        with pytest.raises(AlreadyProcessed):
            requests_service.mark_issued(second, request.id, manager, expected_version=2)
    finally:
        first.close()
        second.close()

    db.expire_all()
    assert get_item(db, item.id).quantity_on_hand == 7
    assert ledger_sum(db, item.id) == 7


def test_interleaved_settlement_records_one_payment(session_factory, db, employee, manager):
    request = approved(db, employee, manager)
    first = session_factory()
    second = session_factory()
    try:
        assert requests_service.get_request(first, request.id).is_settled is False
        assert requests_service.get_request(second, request.id).is_settled is False

        requests_service.settle_request(first, request.id, SettleRequest(amount=Decimal("20")), manager)
        with pytest.raises(AlreadyProcessed):
            requests_service.settle_request(second, request.id, SettleRequest(amount=Decimal("20")), manager)
    finally:
        first.close()
        second.close()

    payments = db.scalars(select(ItemRequestPayment).where(ItemRequestPayment.item_request_id == request.id)).all()
    assert len(payments) == 1
