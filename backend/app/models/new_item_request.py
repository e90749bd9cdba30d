from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.enums import RequestStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NewItemRequest(Base):
    __tablename__ = "new_item_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(160), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    estimated_price_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    needed_by: Mapped[date | None] = mapped_column(Date, nullable=True)
    market_or_location: Mapped[str] = mapped_column(String(160), default="")
    reason: Mapped[str] = mapped_column(Text, default="")
    vendor_suggestion: Mapped[str | None] = mapped_column(String(160), nullable=True)
    attachment_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=RequestStatus.SUBMITTED.value, nullable=False, index=True)
    admin_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    added_to_inventory: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    inventory_item_id: Mapped[int | None] = mapped_column(ForeignKey("inventory_items.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
