from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import InvalidStockMovement, NotFound, VersionConflict
from app.models.enums import MovementType
from app.models.inventory_item import InventoryItem
from app.schemas.inventory import InventoryItemCreate, InventoryItemUpdate, StockAdjustRequest
from app.services.sku import next_sku
from app.services.stock_ledger import StockMutationResult, apply_stock_delta


DESCRIPTIVE_FIELDS = (
    "name",
    "description",
    "unit",
    "category",
    "location",
    "notes",
    "price_per_item",
    "reorder_level",
    "max_level",
)


def get_item(db: Session, item_id: int, include_archived: bool = False) -> InventoryItem:
    item = db.scalar(select(InventoryItem).where(InventoryItem.id == item_id))
    if not item or (item.is_archived and not include_archived):
        raise NotFound("Inventory item", item_id)
    return item


def list_items(
    db: Session,
    search: str = "",
    include_archived: bool = False,
    low_stock_only: bool = False,
) -> list[InventoryItem]:
    query = select(InventoryItem)
    if not include_archived:
        query = query.where(InventoryItem.is_archived.is_(False))
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            func.lower(InventoryItem.name).like(pattern) | func.lower(InventoryItem.sku).like(pattern)
        )
    if low_stock_only:
        query = query.where(InventoryItem.quantity_on_hand <= InventoryItem.reorder_level)
    return list(db.scalars(query.order_by(InventoryItem.name.asc())).all())


def create_item(
    db: Session, payload: InventoryItemCreate, actor_id: int
) -> tuple[InventoryItem, StockMutationResult | None]:
    """Create an item at version 0; initial stock goes through the ledger."""
    settings = get_settings()
    sku = payload.sku.strip() if payload.sku else next_sku(db, payload.category, payload.name)

    item = InventoryItem(
        sku=sku,
        name=payload.name,
        description=payload.description,
        unit=payload.unit,
        category=payload.category,
        location=payload.location,
        notes=payload.notes,
        quantity_on_hand=0,
        price_per_item=payload.price_per_item,
        reorder_level=payload.reorder_level if payload.reorder_level is not None else settings.default_reorder_level,
        max_level=payload.max_level if payload.max_level is not None else settings.default_max_level,
        item_version=0,
        is_archived=False,
        created_by=actor_id,
    )
    db.add(item)
    db.flush()

    mutation = None
    if payload.quantity > 0:
        mutation = apply_stock_delta(
            db,
            item_id=item.id,
            expected_version=0,
            delta=payload.quantity,
            movement_type=MovementType.ADJUSTMENT_CREATE,
            reason="Initial stock",
            actor_id=actor_id,
            commit=False,
        )
    db.commit()
    db.refresh(item)
    return item, mutation


def update_item(
    db: Session, item_id: int, payload: InventoryItemUpdate, actor_id: int
) -> tuple[InventoryItem, StockMutationResult | None]:
    """Update descriptive fields and, when asked, move the quantity to a new target.

    A quantity change needs the version the caller last saw; the difference is
    recorded as an ``ADJUSTMENT_EDIT`` movement. Descriptive fields are only
    written once the quantity change (if any) has been accepted.
    """
    item = get_item(db, item_id)

    mutation = None
    if payload.quantity is not None:
        if payload.item_version is None:
            raise InvalidStockMovement("item_version is required when changing quantity")
        db.refresh(item)
        quantity_delta = payload.quantity - item.quantity_on_hand
        if quantity_delta != 0:
            mutation = apply_stock_delta(
                db,
                item_id=item.id,
                expected_version=payload.item_version,
                delta=quantity_delta,
                movement_type=MovementType.ADJUSTMENT_EDIT,
                reason=payload.reason or "Manual adjustment via edit",
                actor_id=actor_id,
                commit=False,
            )
            item = get_item(db, item_id)

    changes = payload.model_dump(include=set(DESCRIPTIVE_FIELDS), exclude_unset=True)
    for field, value in changes.items():
        if value is not None:
            setattr(item, field, value)
    if payload.sku:
        item.sku = payload.sku.strip()

    db.commit()
    db.refresh(item)
    return item, mutation


def adjust_stock(
    db: Session, item_id: int, payload: StockAdjustRequest, actor_id: int
) -> StockMutationResult:
    if payload.quantity <= 0:
        raise InvalidStockMovement("Quantity must be greater than zero")
    direction = MovementType(payload.movement_type)
    if direction not in (MovementType.INBOUND, MovementType.OUTBOUND):
        raise InvalidStockMovement("Only INBOUND or OUTBOUND movements can be posted directly")

    delta = payload.quantity if direction is MovementType.INBOUND else -payload.quantity
    return apply_stock_delta(
        db,
        item_id=item_id,
        expected_version=payload.item_version,
        delta=delta,
        movement_type=direction,
        reason=payload.reason,
        actor_id=actor_id,
        reference_id=payload.reference,
    )


def archive_item(
    db: Session, item_id: int, expected_version: int, actor_id: int
) -> tuple[InventoryItem, StockMutationResult | None]:
    """Drain the remaining stock through the ledger and flag the item archived.

    The flag is set with a conditional UPDATE on ``item_version`` and a zero
    quantity, so a concurrent stock change between the read and the write
    surfaces as ``VersionConflict`` instead of archiving an item that holds stock.
    """
    item = get_item(db, item_id)

    mutation = None
    version = expected_version
    if item.quantity_on_hand > 0:
        mutation = apply_stock_delta(
            db,
            item_id=item.id,
            expected_version=expected_version,
            delta=-item.quantity_on_hand,
            movement_type=MovementType.ADJUSTMENT_ARCHIVE,
            reason="Item archived",
            actor_id=actor_id,
            commit=False,
        )
        version = mutation.new_version

    result = db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id)
        .where(InventoryItem.item_version == version)
        .where(InventoryItem.quantity_on_hand == 0)
        .where(InventoryItem.is_archived.is_(False))
        .values(is_archived=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        latest = db.scalar(select(InventoryItem.item_version).where(InventoryItem.id == item_id))
        raise VersionConflict(item_id, expected_version, latest)

    db.commit()
    item = get_item(db, item_id, include_archived=True)
    db.refresh(item)
    return item, mutation



def inventory_value(items: list[InventoryItem]) -> Decimal:
    return sum((item.total_value for item in items), Decimal("0"))
