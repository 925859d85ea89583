class InventoryError(Exception):
    """Business-rule failure surfaced to the caller as a structured message."""

    code = "INVENTORY_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class NotFoundError(InventoryError):
    code = "NOT_FOUND"


class InvalidQuantityError(InventoryError):
    code = "INVALID_QUANTITY"


class InvalidArgumentError(InventoryError):
    code = "INVALID_ARGUMENT"


class InsufficientStockError(InventoryError):
    code = "INSUFFICIENT_STOCK"


class ConcurrentModificationError(InventoryError):
    code = "CONCURRENT_MODIFICATION"
