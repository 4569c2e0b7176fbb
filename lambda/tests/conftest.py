"""
Shared pytest fixtures for the Logo receipt bridge.
"""

import importlib.util
import os
from dataclasses import dataclass
from pathlib import Path

import pytest

# Powertools reads these when handler modules are imported
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "logo-receipt-bridge")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "LogoReceiptBridge")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-central-1")

from utils.fake_logo_client import FakeLogoClient  # noqa: E402
from utils.logo_session import reset_logo_session  # noqa: E402

FUNCTIONS_DIR = Path(__file__).resolve().parent.parent / "functions"


class InMemoryReceiptStore:
    """Receipt store keeping rows in a dict and recording every write."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.writes: list[tuple[str, dict]] = []
        self.reads = 0

    def add(self, **fields) -> dict:
        self.rows[fields["id"]] = dict(fields)
        return self.rows[fields["id"]]

    def get_receipt(self, receipt_id: str):
        self.reads += 1
        row = self.rows.get(receipt_id)
        if row is None or row.get("is_deleted"):
            return None
        return dict(row)

    def update_receipt(self, receipt_id: str, data: dict) -> dict:
        self.writes.append((receipt_id, dict(data)))
        self.rows[receipt_id].update(data)
        return dict(self.rows[receipt_id])

    def claim_receipt_for_transfer(self, receipt_id: str, from_statuses: tuple):
        row = self.rows.get(receipt_id)
        if row is None or (row.get("logo_status") or "draft") not in from_statuses:
            return None
        data = {"logo_status": "processing"}
        self.writes.append((receipt_id, data))
        row.update(data)
        return dict(row)

    def get_stuck_receipts(self, minutes_threshold: int = 10) -> list[dict]:
        return [dict(row) for row in self.rows.values() if row.get("logo_status") == "processing"]

    def fail_stuck_receipt(self, receipt_id: str, error_message: str) -> bool:
        row = self.rows[receipt_id]
        if row.get("logo_status") != "processing":
            return False
        self.update_receipt(receipt_id, {"logo_status": "failed", "logo_error_message": error_message})
        return True

    def statuses_written(self, receipt_id: str) -> list[str]:
        return [fields["logo_status"] for rid, fields in self.writes if rid == receipt_id and "logo_status" in fields]


@dataclass
class FakeLambdaContext:
    function_name: str = "logo-bridge-test"
    memory_limit_in_mb: int = 256
    invoked_function_arn: str = "arn:aws:lambda:eu-central-1:123456789012:function:logo-bridge-test"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


def load_function_handler(function_name: str):
    """Import lambda/functions/<function_name>/handler.py under a unique module name."""
    path = FUNCTIONS_DIR / function_name / "handler.py"
    module_spec = importlib.util.spec_from_file_location(f"{function_name}_handler", path)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def _reset_session_singleton():
    reset_logo_session()
    yield
    reset_logo_session()


@pytest.fixture
def store():
    return InMemoryReceiptStore()


@pytest.fixture
def fake_logo():
    return FakeLogoClient(reference_prefix="", first_reference=778899)


@pytest.fixture
def receipt_row():
    """Receipt from the office supplies example: 1254.25 TRY incl. 191.33 KDV."""
    return {
        "id": "c0ffee00-4b1d-4e57-9a3c-7f3a9b2c",
        "user_id": "user_001",
        "amount": 1254.25,
        "currency": "TRY",
        "kdv_amount": 191.33,
        "date": "2026-02-15",
        "merchant_name": "Migros Ticaret A.Ş.",
        "description": "Ofis malzemeleri alımı",
        "logo_status": "pending",
        "logo_expense_code": "GID.OFIS",
        "logo_cash_account_code": "KA-001",
        "is_deleted": False,
    }


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()
