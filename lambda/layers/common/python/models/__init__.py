"""
Logo Receipt Bridge - Data Models
=================================

Typed data models for receipt transfer.
"""

from .receipt import Receipt, LogoStatus, TRANSFERABLE_STATUSES
from .reference_data import ExpenseCategory, SettlementAccount, AccountKind, DEFAULT_VAT_RATE
from .transfer import TransferRequest, TransferOutcome, RemoteDocumentResult

__all__ = [
    "Receipt",
    "LogoStatus",
    "TRANSFERABLE_STATUSES",
    "ExpenseCategory",
    "SettlementAccount",
    "AccountKind",
    "DEFAULT_VAT_RATE",
    "TransferRequest",
    "TransferOutcome",
    "RemoteDocumentResult",
]
