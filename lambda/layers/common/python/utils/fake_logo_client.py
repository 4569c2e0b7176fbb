"""
In-Memory Logo Client
=====================

Deterministic stand-in for LogoClient, used when LOGO_CLIENT_MODE=fake
(local development, demos) and by the test suite.
"""

from typing import Optional

from aws_lambda_powertools import Logger

from models import AccountKind, ExpenseCategory, RemoteDocumentResult, SettlementAccount

from .logo_client import LogoAPIError

logger = Logger()

FAKE_SERVICE_CARDS = [
    ExpenseCategory("GID.OFIS", "Ofis & Kırtasiye Giderleri"),
    ExpenseCategory("GID.ARAC", "Araç & Ulaşım Giderleri"),
    ExpenseCategory("GID.YMK", "Yemek & Temsil Giderleri"),
    ExpenseCategory("GID.OTL", "Otel & Konaklama Giderleri"),
    ExpenseCategory("GID.TLS", "Telefon & İletişim Giderleri"),
    ExpenseCategory("GID.BLG", "Bilgisayar & Teknoloji Giderleri"),
    ExpenseCategory("GID.RKL", "Reklam & Pazarlama Giderleri"),
    ExpenseCategory("GID.GEN", "Genel Giderler"),
]

FAKE_CASH_ACCOUNTS = [
    SettlementAccount("KA-001", "Ana Kasa (TL)", AccountKind.CASH, "TRY"),
    SettlementAccount("KA-002", "Döviz Kasa (USD)", AccountKind.CASH, "USD"),
    SettlementAccount("BK-001", "İş Bankası Vadesiz", AccountKind.BANK, "TRY"),
    SettlementAccount("BK-002", "Garanti BBVA Vadesiz", AccountKind.BANK, "TRY"),
    SettlementAccount("KK-001", "Kurumsal Kredi Kartı", AccountKind.CREDIT_CARD, "TRY"),
]


class FakeLogoClient:
    """
    In-memory Logo client.

    Issues sequential tokens and references. Failures can be scripted
    per operation by setting token_error / document_error to an exception
    instance; the error is raised on every call until cleared.
    """

    def __init__(self, reference_prefix: str = "GDR-", first_reference: int = 1):
        self.reference_prefix = reference_prefix
        self._next_reference = first_reference
        self.token_error: Optional[LogoAPIError] = None
        self.document_error: Optional[LogoAPIError] = None
        self.token_requests = 0
        self.documents: list[dict] = []

    def request_token(self) -> str:
        self.token_requests += 1
        if self.token_error is not None:
            raise self.token_error
        return f"fake-token-{self.token_requests}"

    def create_expense_document(self, token: str, payload: dict) -> RemoteDocumentResult:
        if self.document_error is not None:
            raise self.document_error

        self.documents.append(payload)
        reference = f"{self.reference_prefix}{self._next_reference:06d}"
        self._next_reference += 1
        logger.info(f"Fake Logo document created: {reference}")
        return RemoteDocumentResult(reference_number=reference, raw={"INTERNAL_REFERENCE": reference})

    def list_service_cards(self, token: str) -> list[ExpenseCategory]:
        return list(FAKE_SERVICE_CARDS)

    def list_cash_accounts(self, token: str) -> list[SettlementAccount]:
        return list(FAKE_CASH_ACCOUNTS)
