from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    StockAdjustRequest,
    StockMutationRead,
    StockTransactionRead,
)
from app.schemas.item_requests import ItemRequestCreate, ItemRequestRead, RejectRequest, ReviewRequest, SettleRequest
from app.schemas.new_item_requests import (
    AddToInventoryRequest,
    NewItemApproveRequest,
    NewItemRequestCreate,
    NewItemRequestRead,
)
from app.schemas.reimbursements import PaymentRequest, ReimbursementCreate, ReimbursementRead
from app.schemas.settings import OrgSettingsUpdateRequest
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.schemas.vendors import VendorCreate, VendorRead, VendorUpdate

__all__ = [
    "AddToInventoryRequest",
    "InventoryItemCreate",
    "InventoryItemRead",
    "InventoryItemUpdate",
    "ItemRequestCreate",
    "ItemRequestRead",
    "LoginRequest",
    "NewItemApproveRequest",
    "NewItemRequestCreate",
    "NewItemRequestRead",
    "OrgSettingsUpdateRequest",
    "PaymentRequest",
    "ReimbursementCreate",
    "ReimbursementRead",
    "RejectRequest",
    "ReviewRequest",
    "SettleRequest",
    "StockAdjustRequest",
    "StockMutationRead",
    "StockTransactionRead",
    "TokenResponse",
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "VendorCreate",
    "VendorRead",
    "VendorUpdate",
]
