"""
Receipt Data Model
==================

Represents a captured receipt with its Logo ERP transfer fields.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Any


class LogoStatus(str, Enum):
    """Logo ERP transfer status."""
    DRAFT = "draft"
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


# Statuses a transfer attempt may start from
TRANSFERABLE_STATUSES = (LogoStatus.DRAFT, LogoStatus.PENDING, LogoStatus.FAILED)


@dataclass
class Receipt:
    """
    Represents a receipt in the transfer pipeline.

    Maps to the receipts database table.
    """

    # Primary identifiers
    id: str  # Supabase UUID
    user_id: Optional[str] = None

    # Financial data
    amount: float = 0.0
    currency: str = "TRY"
    kdv_amount: Optional[float] = None
    kdv_rate: Optional[float] = None
    date: Optional[date] = None

    # Descriptive data
    merchant_name: str = ""
    description: Optional[str] = None
    tax_number: Optional[str] = None
    image_url: Optional[str] = None

    # Logo transfer state
    logo_status: LogoStatus = LogoStatus.DRAFT
    logo_ref_no: Optional[str] = None
    logo_expense_code: Optional[str] = None
    logo_expense_name: Optional[str] = None
    logo_cash_account_code: Optional[str] = None
    logo_cash_account_name: Optional[str] = None
    logo_project_code: Optional[str] = None
    logo_error_message: Optional[str] = None
    logo_transferred_at: Optional[datetime] = None

    # Metadata
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_deleted: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Receipt":
        """Create Receipt from database row dictionary."""
        return cls(
            id=data.get("id", ""),
            user_id=data.get("user_id"),
            amount=float(data.get("amount") or 0),
            currency=data.get("currency") or "TRY",
            kdv_amount=cls._parse_float(data.get("kdv_amount")),
            kdv_rate=cls._parse_float(data.get("kdv_rate")),
            date=cls._parse_date(data.get("date")),
            merchant_name=data.get("merchant_name") or "",
            description=data.get("description"),
            tax_number=data.get("tax_number"),
            image_url=data.get("image_url"),
            logo_status=LogoStatus(data.get("logo_status") or "draft"),
            logo_ref_no=data.get("logo_ref_no"),
            logo_expense_code=data.get("logo_expense_code"),
            logo_expense_name=data.get("logo_expense_name"),
            logo_cash_account_code=data.get("logo_cash_account_code"),
            logo_cash_account_name=data.get("logo_cash_account_name"),
            logo_project_code=data.get("logo_project_code"),
            logo_error_message=data.get("logo_error_message"),
            logo_transferred_at=cls._parse_datetime(data.get("logo_transferred_at")),
            created_at=cls._parse_datetime(data.get("created_at")),
            updated_at=cls._parse_datetime(data.get("updated_at")),
            is_deleted=bool(data.get("is_deleted") or False),
        )

    @staticmethod
    def _parse_float(value: Any) -> Optional[float]:
        if value is None or value == "":
            return None
        return float(value)

    @staticmethod
    def _parse_date(value: Any) -> Optional[date]:
        """Parse date from various formats."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return datetime.strptime(value[:10], "%Y-%m-%d").date()
            except ValueError:
                return None
        return None

    @staticmethod
    def _parse_datetime(value: Any) -> Optional[datetime]:
        """Parse datetime from various formats."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                # Handle ISO format with or without timezone
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @property
    def net_amount(self) -> float:
        """Amount before tax."""
        return round(self.amount - (self.kdv_amount or 0.0), 2)

    @property
    def is_transferable(self) -> bool:
        """Check if a transfer attempt may start from the current status."""
        return self.logo_status in TRANSFERABLE_STATUSES

    def to_dict(self) -> dict:
        """Convert to dictionary for database operations."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": self.amount,
            "currency": self.currency,
            "kdv_amount": self.kdv_amount,
            "kdv_rate": self.kdv_rate,
            "date": self.date.isoformat() if self.date else None,
            "merchant_name": self.merchant_name,
            "description": self.description,
            "tax_number": self.tax_number,
            "image_url": self.image_url,
            "logo_status": self.logo_status.value,
            "logo_ref_no": self.logo_ref_no,
            "logo_expense_code": self.logo_expense_code,
            "logo_expense_name": self.logo_expense_name,
            "logo_cash_account_code": self.logo_cash_account_code,
            "logo_cash_account_name": self.logo_cash_account_name,
            "logo_project_code": self.logo_project_code,
            "logo_error_message": self.logo_error_message,
            "logo_transferred_at": self.logo_transferred_at.isoformat() if self.logo_transferred_at else None,
            "is_deleted": self.is_deleted,
        }
