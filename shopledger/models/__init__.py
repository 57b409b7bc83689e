from shopledger.models.audit import AuditLog
from shopledger.models.inventory import Item, PaymentType, Purchase, Sale
from shopledger.models.ledger import FundAccount, FundEntry, FundEntryType, WorkerExpense
from shopledger.models.user import User, UserRole
from shopledger.models.workforce import Attendance, AttendanceStatus, Worker

__all__ = [
    "Attendance",
    "AttendanceStatus",
    "AuditLog",
    "FundAccount",
    "FundEntry",
    "FundEntryType",
    "Item",
    "PaymentType",
    "Purchase",
    "Sale",
    "User",
    "UserRole",
    "Worker",
    "WorkerExpense",
]
