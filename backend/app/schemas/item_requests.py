from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import PriorityLevel, RequestCategory


class ItemRequestCreate(BaseModel):
    title: str = Field(min_length=1, max_length=160)
    category: RequestCategory
    quantity: int = Field(gt=0)
    unit: str = "pcs"
    description: str = ""
    priority: PriorityLevel = PriorityLevel.MEDIUM
    needed_by: date | None = None
    market_or_location: str = ""
    attachment_url: str | None = None
    inventory_item_id: int | None = None
    submit: bool = False


class ReviewRequest(BaseModel):
    comment: str = ""


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)


class SettleRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    receipt_url: str | None = None
    remarks: str | None = None


class ItemRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    category: str
    quantity: int
    unit: str
    description: str
    priority: str
    needed_by: date | None
    market_or_location: str
    attachment_url: str | None
    inventory_item_id: int | None
    status: str
    manager_comment: str | None
    reviewed_by: int | None
    is_settled: bool
    proof_of_payment_url: str | None
    proof_of_payment_remarks: str | None
    created_at: datetime
    updated_at: datetime

