from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ItemCategory


class NewItemRequestCreate(BaseModel):
    item_name: str = Field(min_length=1, max_length=160)
    category: ItemCategory
    quantity: int = Field(gt=0)
    unit: str = "pcs"
    estimated_price_per_unit: Decimal | None = Field(default=None, ge=0)
    needed_by: date | None = None
    market_or_location: str = ""
    reason: str = ""
    vendor_suggestion: str | None = None
    attachment_url: str | None = None


class NewItemApproveRequest(BaseModel):
    create_in_inventory: bool = False
    approved_quantity: int | None = Field(default=None, ge=0)
    approved_unit_price: Decimal | None = Field(default=None, ge=0)
    item_name: str | None = None
    unit: str | None = None
    category: ItemCategory | None = None
    comment: str = ""


class AddToInventoryRequest(BaseModel):
    quantity: int | None = Field(default=None, ge=0)


class NewItemRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    item_name: str
    category: str
    quantity: int
    unit: str
    estimated_price_per_unit: Decimal | None
    needed_by: date | None
    market_or_location: str
    reason: str
    vendor_suggestion: str | None
    attachment_url: str | None
    status: str
    admin_comment: str | None
    reviewed_by: int | None
    approved_at: datetime | None
    approved_quantity: int | None
    approved_unit_price: Decimal | None
    added_to_inventory: bool
    inventory_item_id: int | None
    created_at: datetime
