from app.models.audit import AuditLog
from app.models.inventory_item import InventoryItem
from app.models.item_request import ItemRequest, ItemRequestPayment
from app.models.new_item_request import NewItemRequest
from app.models.reimbursement import Reimbursement
from app.models.role import Role
from app.models.sku_sequence import SkuSequence
from app.models.stock_transaction import StockTransaction
from app.models.system_setting import SystemSetting
from app.models.user import User
from app.models.vendor import Vendor

__all__ = [
    "AuditLog",
    "InventoryItem",
    "ItemRequest",
    "ItemRequestPayment",
    "NewItemRequest",
    "Reimbursement",
    "Role",
    "SkuSequence",
    "StockTransaction",
    "SystemSetting",
    "User",
    "Vendor",
]
