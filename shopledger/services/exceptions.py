"""
Domain errors raised by the ledger, gate and settlement services.

Every error carries the HTTP status it should surface with and a
human-readable message; the API layer renders them as ``{"error": message}``.
"""


class LedgerError(Exception):
    """Base class for all domain errors."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LedgerError):
    default_message = "Invalid request"


class NotFoundError(LedgerError):
    status_code = 404
    default_message = "Not found"


class WorkerNotFound(NotFoundError):
    default_message = "Worker not found"


class OwnerNotFound(NotFoundError):
    default_message = "Owner not found"


class ItemNotFound(NotFoundError):
    default_message = "Item not found"


class PurchaseNotFound(NotFoundError):
    default_message = "Purchase not found"


class SaleNotFound(NotFoundError):
    default_message = "Sale not found"


class ExpenseNotFound(NotFoundError):
    default_message = "Expense not found"


class AttendanceNotFound(NotFoundError):
    default_message = "Attendance not found"


class ShopNotFound(LedgerError):
    """The acting user is not assigned to any shop."""

    default_message = "Worker not linked to any shop"


class UnauthorizedError(LedgerError):
    status_code = 403
    default_message = "Unauthorized"


class InsufficientFunds(LedgerError):
    default_message = "Insufficient fund balance"


class InsufficientStock(LedgerError):
    default_message = "Insufficient stock"


class ConflictError(LedgerError):
    status_code = 409
    default_message = "Conflict"
