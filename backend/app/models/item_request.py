from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import PriorityLevel, RequestStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemRequest(Base):
    __tablename__ = "item_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    priority: Mapped[str] = mapped_column(String(10), default=PriorityLevel.MEDIUM.value, nullable=False)
    needed_by: Mapped[date | None] = mapped_column(Date, nullable=True)
    market_or_location: Mapped[str] = mapped_column(String(160), default="")
    attachment_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    inventory_item_id: Mapped[int | None] = mapped_column(ForeignKey("inventory_items.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=RequestStatus.DRAFT.value, nullable=False, index=True)
    manager_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    is_settled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    proof_of_payment_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    proof_of_payment_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    proof_uploaded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    payment = relationship("ItemRequestPayment", uselist=False, back_populates="item_request")


class ItemRequestPayment(Base):
    __tablename__ = "item_request_payments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_request_id: Mapped[int] = mapped_column(
        ForeignKey("item_requests.id"), unique=True, nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    item_request = relationship("ItemRequest", back_populates="payment")
