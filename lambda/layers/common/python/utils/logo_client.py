"""
Logo Tiger REST API Client
==========================

Handles all Logo REST operations: session token requests, expense
voucher (purchase invoice) creation, and reference data lookups
(service cards, cash offices, bank accounts).
"""

import os
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
from aws_lambda_powertools import Logger

from models import AccountKind, ExpenseCategory, RemoteDocumentResult, SettlementAccount

from .secrets import get_secret

logger = Logger()

# Logo API configuration
LOGO_FIRM_NO = os.environ.get("LOGO_FIRM_NO", "1")
LOGO_PERIOD_NO = os.environ.get("LOGO_PERIOD_NO", "1")

AUTH_TIMEOUT_SECONDS = 30.0
DOCUMENT_TIMEOUT_SECONDS = 60.0

# Known spellings of the session token field
TOKEN_KEYS = ("Token", "token", "access_token")

# Known spellings of the created document's reference field
REFERENCE_KEYS = (
    "INTERNAL_REFERENCE",
    "InternalReference",
    "internalReference",
    "internal_reference",
    "LOGICALREF",
)


@dataclass(frozen=True)
class LogoConfig:
    """Connection settings for a single Logo firm/period."""

    api_url: str
    username: str
    password: str
    firm_no: str = "1"
    period_no: str = "1"

    @classmethod
    def from_secrets(cls) -> "LogoConfig":
        """Build config from Secrets Manager (credentials) and env (firm/period)."""
        return cls(
            api_url=(get_secret("LOGO_API_URL") or "").rstrip("/"),
            username=get_secret("LOGO_USERNAME") or "",
            password=get_secret("LOGO_PASSWORD") or "",
            firm_no=LOGO_FIRM_NO,
            period_no=LOGO_PERIOD_NO,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.username)


class RemoteErpClient(Protocol):
    """Capability the transfer bridge needs from the ERP."""

    def request_token(self) -> str:
        ...

    def create_expense_document(self, token: str, payload: dict) -> RemoteDocumentResult:
        ...

    def list_service_cards(self, token: str) -> list[ExpenseCategory]:
        ...

    def list_cash_accounts(self, token: str) -> list[SettlementAccount]:
        ...


class LogoClient:
    """
    Logo REST API client (live HTTP adapter).

    Every call is a single request; session renewal and retries are
    decided by the caller.
    """

    def __init__(self, config: LogoConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self.base_url = f"{config.api_url}/api/v1"
        self._transport = transport

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=timeout, transport=self._transport)

    @staticmethod
    def _auth_headers(token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    # =========================================================================
    # SESSION OPERATIONS
    # =========================================================================

    def request_token(self) -> str:
        """
        Request a new session token from Logo.

        Returns:
            Bearer token string

        Raises:
            AuthenticationError: If Logo rejects the credentials or returns no token
            TransientNetworkError: If Logo cannot be reached
        """
        body = {
            "UserName": self.config.username,
            "Password": self.config.password,
            "FirmNo": int(self.config.firm_no),
            "PeriodNo": int(self.config.period_no),
        }

        try:
            with self._client(AUTH_TIMEOUT_SECONDS) as client:
                response = client.post(
                    f"{self.base_url}/token",
                    headers={"Content-Type": "application/json"},
                    json=body,
                )
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Logo token request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Logo token request failed: {response.status_code} - {response.text}")
            raise AuthenticationError(
                f"Logo token error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        token = _first_present(_json_or_empty(response), TOKEN_KEYS)
        if not token:
            raise AuthenticationError(
                "Logo token error: no token in response",
                status_code=response.status_code,
                response_body=response.text,
            )

        logger.info("Acquired Logo session token")
        return str(token)

    # =========================================================================
    # DOCUMENT OPERATIONS
    # =========================================================================

    def create_expense_document(self, token: str, payload: dict) -> RemoteDocumentResult:
        """
        Create an expense voucher in Logo.

        Args:
            token: Session token from request_token
            payload: Document body built by the document mapper

        Returns:
            RemoteDocumentResult with Logo's reference (or a synthesized one)

        Raises:
            SessionRejectedError: If Logo rejects the token (401)
            RemoteRejectionError: If Logo rejects the document
            TransientNetworkError: If Logo cannot be reached
        """
        params = {"firmNo": self.config.firm_no, "periodNo": self.config.period_no}

        try:
            with self._client(DOCUMENT_TIMEOUT_SECONDS) as client:
                response = client.post(
                    f"{self.base_url}/purchaseInvoices",
                    headers=self._auth_headers(token),
                    params=params,
                    json=payload,
                )
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Logo document request failed: {e}") from e

        if response.status_code == 401:
            raise SessionRejectedError(
                f"Logo document error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                response_body=response.text,
            )

        if not response.is_success:
            logger.error(f"Logo document creation failed: {response.status_code} - {response.text}")
            raise RemoteRejectionError(
                f"Logo document error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                response_body=response.text,
            )

        data = _json_or_empty(response)
        reference = _first_present(data, REFERENCE_KEYS)

        if reference is None or str(reference) == "":
            fallback = synthesize_reference()
            logger.warning(f"Logo response has no reference, using {fallback}")
            return RemoteDocumentResult(reference_number=fallback, synthesized=True, raw=data)

        logger.info(f"Created Logo expense document: {reference}")
        return RemoteDocumentResult(reference_number=str(reference), raw=data)

    # =========================================================================
    # REFERENCE DATA OPERATIONS
    # =========================================================================

    def _get_items(self, token: str, endpoint: str, params: dict) -> list[dict]:
        try:
            with self._client(AUTH_TIMEOUT_SECONDS) as client:
                response = client.get(
                    f"{self.base_url}/{endpoint}",
                    headers=self._auth_headers(token),
                    params=params,
                )
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Logo {endpoint} request failed: {e}") from e

        if not response.is_success:
            raise RemoteRejectionError(
                f"Logo {endpoint} error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        data = response.json()
        if isinstance(data, dict):
            return data.get("items") or []
        return data or []

    def list_service_cards(self, token: str) -> list[ExpenseCategory]:
        """Fetch service cards usable as expense categories."""
        items = self._get_items(
            token,
            "items",
            {"firmNo": self.config.firm_no, "type": "SERVICE", "pageSize": 200},
        )
        return [ExpenseCategory.from_logo(item) for item in items]

    def list_cash_accounts(self, token: str) -> list[SettlementAccount]:
        """
        Fetch cash offices and bank accounts.

        A failing endpoint is skipped so one unavailable list does not
        hide the other.
        """
        accounts = []
        for endpoint, kind in (("cashOffices", AccountKind.CASH), ("bankAccounts", AccountKind.BANK)):
            try:
                items = self._get_items(token, endpoint, {"firmNo": self.config.firm_no, "pageSize": 100})
            except RemoteRejectionError as e:
                logger.warning(f"Skipping {endpoint}: {e}")
                continue
            accounts.extend(SettlementAccount.from_logo(item, kind) for item in items)
        return accounts


def synthesize_reference() -> str:
    """Fallback reference for a successful call that returned none."""
    return f"REF-{int(time.time() * 1000)}"


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _first_present(data: dict, keys: tuple) -> Optional[object]:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class LogoAPIError(Exception):
    """Raised when a Logo API call fails."""

    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class AuthenticationError(LogoAPIError):
    """Logo refused to issue a session token."""
    pass


class RemoteRejectionError(LogoAPIError):
    """Logo rejected a request (validation, business rule, malformed payload)."""
    pass


class SessionRejectedError(RemoteRejectionError):
    """Logo rejected the session token; a fresh token may succeed."""
    pass


class TransientNetworkError(LogoAPIError):
    """Logo could not be reached (timeout, connection failure)."""
    pass
