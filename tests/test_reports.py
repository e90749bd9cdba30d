from decimal import Decimal

from app.schemas.inventory import InventoryItemCreate
from app.schemas.item_requests import ItemRequestCreate
from app.services import item_requests as requests_service
from app.services import reports
from app.services.inventory import create_item


def add_item(db, admin, name, quantity, price, reorder_level=5):
    item, _ = create_item(
        db,
        InventoryItemCreate(
            name=name, quantity=quantity, price_per_item=Decimal(price), reorder_level=reorder_level
        ),
        admin.id,
    )
    return item


def test_valuation_total_is_quantity_times_price(db, admin):
    add_item(db, admin, "Boxes", 10, "2.50")
    add_item(db, admin, "Tape", 3, "40.00")

    report = reports.inventory_valuation(db)

    assert {row["name"]: row["total_value"] for row in report["items"]} == {
        "Boxes": Decimal("25.00"),
        "Tape": Decimal("120.00"),
    }
    assert report["total_value"] == Decimal("145.00")
    assert report["total_value"] == sum(row["total_value"] for row in report["items"])


def test_low_stock_suggests_refill_to_max(db, admin):
    add_item(db, admin, "Boxes", 50, "2.50")
    tape = add_item(db, admin, "Tape", 3, "40.00")

    rows = reports.low_stock(db)

    assert [row["id"] for row in rows] == [tape.id]
    assert rows[0]["suggested_order"] == 97


def test_dashboard_counts_are_scoped_for_employees(db, admin, employee, manager, make_user):
    add_item(db, admin, "Tape", 3, "40.00")
    for user in (employee, make_user()):
        requests_service.create_request(
            db, ItemRequestCreate(title="Gloves", category="Misc", quantity=1, submit=True), user
        )

    mine = reports.dashboard(db, employee)
    everyone = reports.dashboard(db, manager)

    assert mine["item_requests"] == {"Submitted": 1}
    assert everyone["item_requests"] == {"Submitted": 2}
    assert everyone["inventory_items"] == 1
    assert everyone["low_stock_items"] == 1
    assert everyone["inventory_value"] == Decimal("120.00")
