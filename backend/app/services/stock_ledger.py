"""
Versioned stock mutation.

``quantity_on_hand`` on an inventory item is a cached projection of the
item's stock ledger (``inventory_transactions``). Every change to it goes
through :func:`apply_stock_delta`, which:

1. rejects zero deltas and unknown movement types,
2. loads the item (missing or archived -> ``NotFound``),
3. compares the caller's ``expected_version`` with ``item_version``
   (mismatch -> ``VersionConflict``),
4. rejects deltas that would take the quantity below zero
   (``InsufficientStock``),
5. issues ``UPDATE ... WHERE id = :id AND item_version = :expected`` and
   inserts the ledger row in the same transaction.

Step 5 is what makes concurrent callers safe: the database re-evaluates the
version predicate against the committed row, so of two writers holding the
same version exactly one updates a row. The loser sees zero affected rows and
gets ``VersionConflict``; nothing is written for it.

Callers that hit ``VersionConflict`` (or a transport error with an unknown
outcome) must reload the item before retrying. Never replay a mutation
blindly: the first attempt may have committed.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientStock, InvalidStockMovement, NotFound, StockroomError, VersionConflict
from app.core.logging_config import get_logger
from app.models.enums import MovementType
from app.models.inventory_item import InventoryItem
from app.models.stock_transaction import StockTransaction


logger = get_logger("stock_ledger")


@dataclass(frozen=True)
class StockMutationResult:
    item_id: int
    new_quantity: int
    new_version: int
    low_stock: bool
    transaction_id: int

    def as_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "new_quantity": self.new_quantity,
            "new_version": self.new_version,
            "low_stock": self.low_stock,
            "transaction_id": self.transaction_id,
        }


def _coerce_movement_type(movement_type: MovementType | str) -> MovementType:
    try:
        return MovementType(movement_type)
    except ValueError as exc:
        raise InvalidStockMovement(f"Unknown movement type: {movement_type}") from exc


def _swap_quantity(
    db: Session, item_id: int, expected_version: int, new_quantity: int
) -> bool:
    """Compare-and-swap on (id, item_version). True when this caller won."""
    result = db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id)
        .where(InventoryItem.item_version == expected_version)
        .where(InventoryItem.is_archived.is_(False))
        .values(quantity_on_hand=new_quantity, item_version=InventoryItem.item_version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def apply_stock_delta(
    db: Session,
    *,
    item_id: int,
    expected_version: int,
    delta: int,
    movement_type: MovementType | str,
    reason: str,
    actor_id: int,
    reference_id: str | None = None,
    commit: bool = True,
) -> StockMutationResult:
    """Apply ``delta`` to an item's on-hand quantity and append a ledger row.

    With ``commit=False`` the changes are flushed but left for the caller to
    commit with the rest of its unit of work. Any failure rolls back the
    session transaction, including the caller's pending changes.
    """
    try:
        kind = _coerce_movement_type(movement_type)
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise InvalidStockMovement("Quantity delta must be a non-zero integer")

        item = db.scalar(
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        if item is None or item.is_archived:
            raise NotFound("Inventory item", item_id)

        current_quantity = item.quantity_on_hand
        current_version = item.item_version
        if current_version != expected_version:
            raise VersionConflict(item_id, expected_version, current_version)

        new_quantity = current_quantity + delta
        if new_quantity < 0:
            raise InsufficientStock(item_id, current_quantity, delta)

        if not _swap_quantity(db, item_id, expected_version, new_quantity):
            latest = db.scalar(select(InventoryItem.item_version).where(InventoryItem.id == item_id))
            raise VersionConflict(item_id, expected_version, latest)

        transaction = StockTransaction(
            item_id=item_id,
            type=kind.value,
            quantity=delta,
            prev_quantity=current_quantity,
            new_quantity=new_quantity,
            reason=reason,
            reference=reference_id,
            performed_by=actor_id,
        )
        db.add(transaction)
        db.flush()
        db.expire(item, ["quantity_on_hand", "item_version", "updated_at"])

        result = StockMutationResult(
            item_id=item_id,
            new_quantity=new_quantity,
            new_version=expected_version + 1,
            low_stock=new_quantity <= item.reorder_level,
            transaction_id=transaction.id,
        )
        if commit:
            db.commit()
    except StockroomError as exc:
        db.rollback()
        logger.info(
            "stock_mutation_rejected",
            extra={"item_id": item_id, "delta": delta, "error_code": exc.code},
        )
        raise
    except Exception:
        db.rollback()
        logger.exception("stock_mutation_failed", extra={"item_id": item_id, "delta": delta})
        raise

    logger.info(
        "stock_mutation_applied",
        extra={
            "item_id": item_id,
            "movement_type": kind.value,
            "delta": delta,
            "new_quantity": result.new_quantity,
            "new_version": result.new_version,
            "low_stock": result.low_stock,
            "reference": reference_id,
        },
    )
    return result


def list_transactions(db: Session, item_id: int, limit: int = 200) -> list[StockTransaction]:
    return list(
        db.scalars(
            select(StockTransaction)
            .where(StockTransaction.item_id == item_id)
            .order_by(StockTransaction.id.desc())
            .limit(limit)
        ).all()
    )


def ledger_sum(db: Session, item_id: int) -> int:
    return int(
        db.scalar(
            select(func.coalesce(func.sum(StockTransaction.quantity), 0)).where(
                StockTransaction.item_id == item_id
            )
        )
        or 0
    )


def find_ledger_drift(db: Session) -> list[dict]:
    """Items whose cached quantity differs from the sum of their ledger deltas."""
    totals = (
        select(
            StockTransaction.item_id.label("item_id"),
            func.sum(StockTransaction.quantity).label("ledger_quantity"),
        )
        .group_by(StockTransaction.item_id)
        .subquery()
    )
    rows = db.execute(
        select(
            InventoryItem.id,
            InventoryItem.sku,
            InventoryItem.quantity_on_hand,
            func.coalesce(totals.c.ledger_quantity, 0).label("ledger_quantity"),
        )
        .outerjoin(totals, totals.c.item_id == InventoryItem.id)
        .where(InventoryItem.quantity_on_hand != func.coalesce(totals.c.ledger_quantity, 0))
        .order_by(InventoryItem.id)
    ).all()
    return [
        {
            "item_id": row.id,
            "sku": row.sku,
            "quantity_on_hand": row.quantity_on_hand,
            "ledger_quantity": int(row.ledger_quantity),
            "difference": row.quantity_on_hand - int(row.ledger_quantity),
        }
        for row in rows
    ]
