from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ReimbursementCategory


class ReimbursementCreate(BaseModel):
    expense_date: date | None = None
    category: ReimbursementCategory
    amount: Decimal = Field(gt=0)
    market_or_location: str = ""
    notes: str | None = None
    bill_file_url: str = Field(min_length=1)


class PaymentRequest(BaseModel):
    payment_reference: str = Field(min_length=1)


class ReimbursementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    expense_date: date
    category: str
    amount: Decimal
    market_or_location: str
    notes: str | None
    bill_file_url: str
    status: str
    manager_comment: str | None
    reviewed_by: int | None
    payment_reference: str | None
    created_at: datetime
