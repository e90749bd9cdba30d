from enum import Enum


class AppRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class MovementType(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    ADJUSTMENT_CREATE = "ADJUSTMENT_CREATE"
    ADJUSTMENT_EDIT = "ADJUSTMENT_EDIT"
    ADJUSTMENT_ARCHIVE = "ADJUSTMENT_ARCHIVE"


class RequestStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PROCURED = "Procured"
    ISSUED = "Issued"


class RequestCategory(str, Enum):
    STATIONERY = "Stationery"
    PACKAGING = "Packaging"
    TRANSPORT = "Transport"
    MISC = "Misc"


class ItemCategory(str, Enum):
    PACKAGING = "Packaging"
    STATIONERY = "Stationery"
    EQUIPMENT = "Equipment"
    OTHER = "Other"


class PriorityLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ReimbursementStatus(str, Enum):
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PAID = "Paid"


class ReimbursementCategory(str, Enum):
    TRAVEL = "Travel"
    FOOD = "Food"
    STATIONERY = "Stationery"
    MISC = "Misc"
