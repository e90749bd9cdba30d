from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    sku: str | None = None
    description: str = ""
    unit: str = "pcs"
    category: str = "Other"
    location: str = ""
    notes: str = ""
    quantity: int = Field(default=0, ge=0)
    price_per_item: Decimal = Field(default=Decimal("0"), ge=0)
    reorder_level: int | None = Field(default=None, ge=0)
    max_level: int | None = Field(default=None, ge=0)


class InventoryItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    sku: str | None = None
    description: str | None = None
    unit: str | None = None
    category: str | None = None
    location: str | None = None
    notes: str | None = None
    price_per_item: Decimal | None = Field(default=None, ge=0)
    reorder_level: int | None = Field(default=None, ge=0)
    max_level: int | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    item_version: int | None = None
    reason: str = ""


class StockAdjustRequest(BaseModel):
    movement_type: Literal["INBOUND", "OUTBOUND"]
    quantity: int = Field(gt=0)
    item_version: int
    reason: str = ""
    reference: str | None = None


class InventoryItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str
    description: str
    unit: str
    category: str
    location: str
    notes: str
    quantity_on_hand: int
    price_per_item: Decimal
    reorder_level: int
    max_level: int
    item_version: int
    is_archived: bool
    is_low_stock: bool
    total_value: Decimal
    created_at: datetime
    updated_at: datetime


class StockTransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    type: str
    quantity: int
    prev_quantity: int
    new_quantity: int
    reason: str
    reference: str | None
    performed_by: int
    created_at: datetime


class StockMutationRead(BaseModel):
    item_id: int
    new_quantity: int
    new_version: int
    low_stock: bool
    transaction_id: int
