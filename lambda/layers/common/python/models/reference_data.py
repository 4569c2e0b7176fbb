"""
Logo Reference Data Models
==========================

Expense categories (Logo service cards) and settlement accounts
(cash offices, bank accounts, credit cards) offered to the user
when mapping a receipt for transfer.
"""

from dataclasses import dataclass
from enum import Enum

DEFAULT_VAT_RATE = 18.0


class AccountKind(str, Enum):
    """Settlement account kind."""
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit_card"


@dataclass(frozen=True)
class ExpenseCategory:
    """A Logo service card used as the expense item of a voucher."""

    code: str
    name: str
    vat_rate: float = DEFAULT_VAT_RATE

    @classmethod
    def from_logo(cls, item: dict) -> "ExpenseCategory":
        """Build from a Logo items row (upper or lower case keys)."""
        vat_rate = item.get("VAT_RATE", item.get("vatRate"))
        return cls(
            code=str(item.get("CODE") or item.get("code") or ""),
            name=str(item.get("NAME") or item.get("name") or ""),
            vat_rate=float(vat_rate) if vat_rate is not None else DEFAULT_VAT_RATE,
        )

    def to_dict(self) -> dict:
        """Shape consumed by the mobile client."""
        return {
            "code": self.code,
            "name": self.name,
            "type": "expense",
            "kdvRate": self.vat_rate,
        }


@dataclass(frozen=True)
class SettlementAccount:
    """A cash, bank or credit card account an expense is paid from."""

    code: str
    name: str
    kind: AccountKind = AccountKind.CASH
    currency: str = "TRY"

    @classmethod
    def from_logo(cls, item: dict, kind: AccountKind) -> "SettlementAccount":
        """Build from a Logo cashOffices/bankAccounts row."""
        return cls(
            code=str(item.get("CODE") or item.get("code") or ""),
            name=str(item.get("DESCRIPTION") or item.get("description") or item.get("name") or ""),
            kind=kind,
            currency=item.get("CURRENCY_CODE") or item.get("currency") or "TRY",
        )

    def to_dict(self) -> dict:
        """Shape consumed by the mobile client."""
        return {
            "code": self.code,
            "name": self.name,
            "type": self.kind.value,
            "currency": self.currency,
        }
