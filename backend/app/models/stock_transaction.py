from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class StockTransaction(Base):
    """One row per successful quantity mutation. Append-only."""

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("inventory_items.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    prev_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), default="")
    reference: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    performed_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    item = relationship("InventoryItem")


class ImmutableLedgerError(RuntimeError):
    pass


@event.listens_for(StockTransaction, "before_update")
def reject_ledger_update(_mapper, _connection, target: StockTransaction) -> None:
    raise ImmutableLedgerError(f"Stock transaction {target.id} is append-only")


@event.listens_for(StockTransaction, "before_delete")
def reject_ledger_delete(_mapper, _connection, target: StockTransaction) -> None:
    raise ImmutableLedgerError(f"Stock transaction {target.id} is append-only")
