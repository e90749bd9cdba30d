"""
Typed errors raised by the services layer.

Every class carries a machine-readable ``code`` and an HTTP ``status_code``
so callers can branch on the type (retry on ``VersionConflict``, show a
message on ``InsufficientStock``) instead of parsing messages.

    StockroomError
    +-- NotFound                  NOT_FOUND              terminal
    +-- StockError
    |   +-- VersionConflict       VERSION_CONFLICT       reload and retry
    |   +-- InsufficientStock     INSUFFICIENT_STOCK     correct the delta
    |   +-- InvalidStockMovement  INVALID_STOCK_MOVEMENT
    +-- WorkflowError
    |   +-- AlreadyProcessed      ALREADY_PROCESSED      terminal
    |   +-- InvalidStatusTransition
    |   +-- LimitExceeded
    +-- PermissionDenied
"""

from typing import Any


class StockroomError(Exception):
    code: str = "STOCKROOM_ERROR"
    status_code: int = 400

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"detail": str(self), "code": self.code}
        for key, value in vars(self).items():
            if not key.startswith("_"):
                data[key] = value
        return data


class NotFound(StockroomError):
    """Entity is missing (or, for inventory items, archived)."""

    code: str = "NOT_FOUND"
    status_code: int = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StockError(StockroomError):
    code: str = "STOCK_ERROR"
    status_code: int = 409


class VersionConflict(StockError):
    """The caller's view of the item is stale; a concurrent writer got there first."""

    code: str = "VERSION_CONFLICT"

    def __init__(self, item_id: int, expected_version: int, current_version: int | None):
        self.item_id = item_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Item {item_id} was modified by another user "
            f"(expected version {expected_version}, current {current_version})"
        )


class InsufficientStock(StockError):
    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, on_hand: int, delta: int):
        self.item_id = item_id
        self.on_hand = on_hand
        self.delta = delta
        super().__init__(f"Item {item_id} has {on_hand} on hand, cannot apply {delta}")


class InvalidStockMovement(StockError):
    code: str = "INVALID_STOCK_MOVEMENT"
    status_code: int = 422

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class WorkflowError(StockroomError):
    code: str = "WORKFLOW_ERROR"
    status_code: int = 409


class AlreadyProcessed(WorkflowError):
    """The request was already applied; repeating it would double-apply its effect."""

    code: str = "ALREADY_PROCESSED"

    def __init__(self, entity: str, entity_id: Any, step: str):
        self.entity = entity
        self.entity_id = entity_id
        self.step = step
        super().__init__(f"{entity} {entity_id} already processed: {step}")


class InvalidStatusTransition(WorkflowError):
    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, entity: str, entity_id: Any, current: str, target: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(f"{entity} {entity_id} cannot move from {current} to {target}")


class LimitExceeded(WorkflowError):
    code: str = "LIMIT_EXCEEDED"
    status_code: int = 422

    def __init__(self, category: str, amount: float, limit: float):
        self.category = category
        self.amount = amount
        self.limit = limit
        super().__init__(f"{category} claims are limited to {limit}, got {amount}")


class PermissionDenied(StockroomError):
    code: str = "PERMISSION_DENIED"
    status_code: int = 403

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Not allowed to {action}")
