"""
Transfer Request/Outcome Data Models
====================================

Ephemeral values exchanged with the caller of a Logo transfer.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TransferRequest:
    """A single request to transfer a receipt to Logo."""

    receipt_id: str
    expense_code: str
    cash_account_code: str
    description: Optional[str] = None
    project_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TransferRequest":
        """Create from a request body (camelCase keys from the mobile client)."""
        return cls(
            receipt_id=_text(data, "receiptId", "receipt_id") or "",
            expense_code=_text(data, "expenseCode", "expense_code") or "",
            cash_account_code=_text(data, "cashAccountCode", "cash_account_code") or "",
            description=_text(data, "description"),
            project_code=_text(data, "projectCode", "project_code"),
        )


def _text(data: dict, *keys: str) -> Optional[str]:
    """First non-empty value among keys, as a string (JSON numbers become codes)."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool) and value != "":
            return str(value)
    return None


@dataclass(frozen=True)
class TransferOutcome:
    """
    Result of a transfer attempt.

    Exactly one of reference_number (success) or error_message (failure)
    is set.
    """

    success: bool
    reference_number: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        if self.success and not self.reference_number:
            raise ValueError("Successful outcome requires a reference number")
        if not self.success and not self.error_message:
            raise ValueError("Failed outcome requires an error message")
        if self.reference_number and self.error_message:
            raise ValueError("Outcome cannot carry both a reference and an error")

    @classmethod
    def succeeded(cls, reference_number: str) -> "TransferOutcome":
        return cls(success=True, reference_number=reference_number)

    @classmethod
    def failed(cls, error_message: str) -> "TransferOutcome":
        return cls(success=False, error_message=error_message)

    def to_dict(self) -> dict:
        """Response body expected by the mobile client."""
        if self.success:
            return {"success": True, "logoRefNo": self.reference_number}
        return {"success": False, "errorMessage": self.error_message}


@dataclass(frozen=True)
class RemoteDocumentResult:
    """Normalized result of a Logo document creation call."""

    reference_number: str
    synthesized: bool = False
    raw: Optional[dict] = None
