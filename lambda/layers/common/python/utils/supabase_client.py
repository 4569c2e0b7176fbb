"""
Supabase Client Utilities
=========================

HTTP-based Supabase client for receipt storage.
Uses httpx for direct REST API calls to avoid heavy SDK dependencies.
"""

from typing import Optional
from datetime import datetime, timedelta, timezone

import httpx
from aws_lambda_powertools import Logger

from .secrets import require_secrets

logger = Logger()

RECEIPTS_TABLE = "receipts"


def _get_config() -> dict:
    """Supabase URL and service key from the bridge secret."""
    values = require_secrets("SUPABASE_URL", "SUPABASE_SERVICE_KEY")
    return {"url": values["SUPABASE_URL"], "key": values["SUPABASE_SERVICE_KEY"]}


def _get_headers(key: str) -> dict:
    """Get headers for Supabase REST API."""
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseClient:
    """
    Receipt store backed by Supabase PostgREST.

    Updates are partial: only the fields passed are written.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if url is None or key is None:
            config = _get_config()
            url, key = config["url"], config["key"]
        self.url = url.rstrip("/")
        self._client = httpx.Client(timeout=30.0, headers=_get_headers(key), transport=transport)

    def __del__(self):
        if hasattr(self, '_client'):
            self._client.close()

    def _rest_url(self, table: str) -> str:
        return f"{self.url}/rest/v1/{table}"

    def _query(self, table: str, params: dict = None) -> list[dict]:
        """Execute a SELECT query."""
        response = self._client.get(self._rest_url(table), params=params or {})
        response.raise_for_status()
        return response.json()

    def _insert(self, table: str, data: dict) -> dict:
        """Insert a record."""
        response = self._client.post(self._rest_url(table), json=data)
        response.raise_for_status()
        result = response.json()
        return result[0] if isinstance(result, list) and result else result

    def _update(self, table: str, data: dict, params: dict) -> list[dict]:
        """Update records matching PostgREST filter params; returns updated rows."""
        response = self._client.patch(self._rest_url(table), json=data, params=params)
        response.raise_for_status()
        result = response.json()
        return result if isinstance(result, list) else []

    # =========================================================================
    # RECEIPT OPERATIONS
    # =========================================================================

    def get_receipt(self, receipt_id: str) -> Optional[dict]:
        """Fetch a single receipt by ID. Soft-deleted receipts are not returned."""
        results = self._query(RECEIPTS_TABLE, {
            "id": f"eq.{receipt_id}",
            "is_deleted": "not.is.true",
        })
        return results[0] if results else None

    def create_receipt(self, data: dict) -> dict:
        """Insert a new receipt."""
        record = {"logo_status": "draft", **data}
        return self._insert(RECEIPTS_TABLE, record)

    def update_receipt(self, receipt_id: str, data: dict) -> dict:
        """Update receipt fields."""
        data = {**data, "updated_at": _utcnow_iso()}
        rows = self._update(RECEIPTS_TABLE, data, {"id": f"eq.{receipt_id}"})
        return rows[0] if rows else {}

    def delete_receipt(self, receipt_id: str) -> dict:
        """Soft-delete a receipt."""
        return self.update_receipt(receipt_id, {"is_deleted": True})

    def claim_receipt_for_transfer(self, receipt_id: str, from_statuses: tuple[str, ...]) -> Optional[dict]:
        """
        Set logo_status to 'processing' only if the current status is one of from_statuses.

        The status filter is evaluated by Postgres within the UPDATE, so of two
        concurrent claims only one matches. A NULL status counts as 'draft'.

        Returns:
            The updated row, or None if nothing matched
        """
        status_filter = f"logo_status.in.({','.join(from_statuses)})"
        if "draft" in from_statuses:
            status_filter += ",logo_status.is.null"
        params = {
            "id": f"eq.{receipt_id}",
            "or": f"({status_filter})",
        }
        rows = self._update(RECEIPTS_TABLE, {"logo_status": "processing", "updated_at": _utcnow_iso()}, params)
        return rows[0] if rows else None

    def get_stuck_receipts(self, minutes_threshold: int = 10) -> list[dict]:
        """Get receipts stuck in 'processing' status."""
        cutoff_time = (datetime.now(timezone.utc) - timedelta(minutes=minutes_threshold)).isoformat()
        results = self._query(RECEIPTS_TABLE, {
            "logo_status": "eq.processing",
            "updated_at": f"lt.{cutoff_time}",
            "select": "id,logo_status,updated_at",
        })
        logger.info(f"Found {len(results)} stuck receipts")
        return results

    def fail_stuck_receipt(self, receipt_id: str, error_message: str) -> bool:
        """Mark a receipt 'failed' only if it is still 'processing'. Returns True if updated."""
        rows = self._update(
            RECEIPTS_TABLE,
            {"logo_status": "failed", "logo_error_message": error_message, "updated_at": _utcnow_iso()},
            {"id": f"eq.{receipt_id}", "logo_status": "eq.processing"},
        )
        return bool(rows)
