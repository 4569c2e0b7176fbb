"""
Transfer Orchestrator Tests
===========================

Tests for the receipt -> Logo transfer state machine.

Usage:
    pytest lambda/tests/test_transfer.py -v
"""

from unittest.mock import Mock

import httpx
import pytest

from models import RemoteDocumentResult, TransferRequest
from utils.logo_client import (
    AuthenticationError,
    LogoClient,
    LogoConfig,
    RemoteRejectionError,
    SessionRejectedError,
    TransientNetworkError,
)
from transfer import TransferOrchestrator, ValidationError

TRANSFER_STATE_FIELDS = {"logo_status", "logo_ref_no", "logo_error_message", "logo_transferred_at"}

VAT_MISMATCH = RemoteRejectionError(
    "Logo document error: 400 - VAT mismatch",
    status_code=400,
    response_body="VAT mismatch",
)


@pytest.fixture
def receipt_id(store, receipt_row):
    store.add(**receipt_row)
    return receipt_row["id"]


@pytest.fixture
def orchestrator(store, fake_logo):
    return TransferOrchestrator(store, fake_logo)


def office_request(receipt_id: str, **overrides) -> TransferRequest:
    fields = {"receipt_id": receipt_id, "expense_code": "GID.OFIS", "cash_account_code": "KA-001", **overrides}
    return TransferRequest(**fields)


class TestTransferScenarios:
    """End-to-end transfer scenarios."""

    def test_successful_transfer(self, orchestrator, store, fake_logo, receipt_id):
        """Logo accepts the voucher and returns reference 778899."""
        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.success is True
        assert outcome.reference_number == "778899"
        assert outcome.error_message is None

        row = store.rows[receipt_id]
        assert row["logo_status"] == "success"
        assert row["logo_ref_no"] == "778899"
        assert row["logo_error_message"] is None
        assert row["logo_transferred_at"]
        assert fake_logo.documents[0]["TRANSACTIONS"]["items"][0]["PRICE"] == 1062.92

    def test_remote_rejection(self, orchestrator, store, fake_logo, receipt_id):
        """Logo rejects the voucher with HTTP 400 'VAT mismatch'."""
        fake_logo.document_error = VAT_MISMATCH

        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.success is False
        assert "VAT mismatch" in outcome.error_message
        row = store.rows[receipt_id]
        assert row["logo_status"] == "failed"
        assert "VAT mismatch" in row["logo_error_message"]
        assert row.get("logo_ref_no") is None

    @pytest.mark.parametrize("field", ["expense_code", "cash_account_code"])
    @pytest.mark.parametrize("value", ["", "   "])
    def test_missing_code_fails_fast(self, orchestrator, store, fake_logo, receipt_id, field, value):
        """Empty mapping codes raise before any read, write or network call."""
        with pytest.raises(ValidationError):
            orchestrator.transfer(office_request(receipt_id, **{field: value}))

        assert store.reads == 0
        assert store.writes == []
        assert store.rows[receipt_id]["logo_status"] == "pending"
        assert fake_logo.token_requests == 0
        assert fake_logo.documents == []

    def test_non_string_code_fails_validation(self, orchestrator, store, receipt_id):
        with pytest.raises(ValidationError, match="expenseCode"):
            orchestrator.transfer(office_request(receipt_id, expense_code=770))

        assert store.reads == 0

    def test_missing_receipt_id_fails_fast(self, orchestrator, store):
        with pytest.raises(ValidationError, match="receiptId"):
            orchestrator.transfer(office_request(""))

        assert store.reads == 0

    def test_auth_failure_skips_document_creation(self, orchestrator, store, fake_logo, receipt_id):
        """Logo auth returns HTTP 500: receipt fails, no voucher is posted."""
        fake_logo.token_error = AuthenticationError("Logo token error: 500", status_code=500)

        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.success is False
        assert "500" in outcome.error_message
        assert store.rows[receipt_id]["logo_status"] == "failed"
        assert fake_logo.documents == []

    def test_missing_remote_reference_is_synthesized(self, store, receipt_id):
        """Logo accepts but omits the reference: success with a synthesized one."""
        client = LogoClient(
            LogoConfig(api_url="https://logo.test", username="u", password="p"),
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"Token": "t"} if request.url.path.endswith("/token") else {})
            ),
        )

        outcome = TransferOrchestrator(store, client).transfer(office_request(receipt_id))

        assert outcome.success is True
        assert outcome.reference_number.startswith("REF-")
        assert store.rows[receipt_id]["logo_ref_no"] == outcome.reference_number

    def test_retry_after_failure(self, orchestrator, store, fake_logo, receipt_id):
        """A failed receipt re-enters at start and succeeds, clearing the error."""
        fake_logo.document_error = VAT_MISMATCH
        orchestrator.transfer(office_request(receipt_id))
        fake_logo.document_error = None

        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.success is True
        assert store.statuses_written(receipt_id) == ["processing", "failed", "processing", "success"]
        assert store.rows[receipt_id]["logo_error_message"] is None
        assert store.rows[receipt_id]["logo_ref_no"] == outcome.reference_number


class TestStateMachine:
    """Properties that hold for every transfer attempt."""

    @pytest.mark.parametrize("start", ["draft", "pending", "failed"])
    @pytest.mark.parametrize("remote_error", [None, VAT_MISMATCH, TransientNetworkError("timeout")])
    def test_ends_in_exactly_one_terminal_state(self, store, receipt_row, start, remote_error):
        store.add(**{**receipt_row, "logo_status": start})
        fake = Mock()
        fake.request_token.return_value = "tok"
        if remote_error is None:
            fake.create_expense_document.return_value = RemoteDocumentResult("R-1")
        else:
            fake.create_expense_document.side_effect = remote_error

        outcome = TransferOrchestrator(store, fake).transfer(office_request(receipt_row["id"]))

        row = store.rows[receipt_row["id"]]
        assert row["logo_status"] == ("success" if outcome.success else "failed")
        assert bool(row.get("logo_ref_no")) != bool(row.get("logo_error_message"))
        assert store.statuses_written(receipt_row["id"]) == ["processing", row["logo_status"]]

    def test_only_transfer_state_fields_are_written(self, orchestrator, store, fake_logo, receipt_id):
        orchestrator.transfer(office_request(receipt_id, description="override"))
        fake_logo.document_error = VAT_MISMATCH
        store.rows[receipt_id]["logo_status"] = "failed"
        orchestrator.transfer(office_request(receipt_id))

        for _, fields in store.writes:
            assert set(fields) <= TRANSFER_STATE_FIELDS

    def test_retry_is_deterministic(self, orchestrator, store, fake_logo, receipt_id):
        """Two attempts against a failing remote fail the same way, one write pair each."""
        fake_logo.document_error = VAT_MISMATCH

        first = orchestrator.transfer(office_request(receipt_id))
        second = orchestrator.transfer(office_request(receipt_id))

        assert first == second
        assert store.statuses_written(receipt_id) == ["processing", "failed", "processing", "failed"]

    def test_unexpected_error_still_fails_receipt(self, orchestrator, store, receipt_row):
        """A receipt that cannot be mapped never stays in processing."""
        store.add(**{**receipt_row, "date": None})

        outcome = orchestrator.transfer(office_request(receipt_row["id"]))

        assert outcome.success is False
        assert "no date" in outcome.error_message
        assert store.rows[receipt_row["id"]]["logo_status"] == "failed"

    def test_persistence_error_on_terminal_write_propagates(self, fake_logo, store, receipt_id):
        store.update_receipt = Mock(side_effect=RuntimeError("database unavailable"))

        with pytest.raises(RuntimeError, match="database unavailable"):
            TransferOrchestrator(store, fake_logo).transfer(office_request(receipt_id))


class TestStartGuards:
    """Attempts that must not start."""

    def test_already_transferred_is_a_no_op(self, orchestrator, store, fake_logo, receipt_row):
        store.add(**{**receipt_row, "logo_status": "success", "logo_ref_no": "GDR-2026-001234"})

        outcome = orchestrator.transfer(office_request(receipt_row["id"]))

        assert outcome.success is True
        assert outcome.reference_number == "GDR-2026-001234"
        assert store.writes == []
        assert fake_logo.token_requests == 0

    def test_in_progress_transfer_is_not_started_again(self, orchestrator, store, fake_logo, receipt_row):
        store.add(**{**receipt_row, "logo_status": "processing"})

        outcome = orchestrator.transfer(office_request(receipt_row["id"]))

        assert outcome.success is False
        assert "already in progress" in outcome.error_message
        assert store.writes == []
        assert store.rows[receipt_row["id"]]["logo_status"] == "processing"
        assert fake_logo.token_requests == 0

    def test_lost_claim_race_reports_winner_success(self, orchestrator, store, fake_logo, receipt_id):
        """Another attempt finished between our read and our claim."""
        def claim_lost(rid, statuses):
            store.rows[rid].update({"logo_status": "success", "logo_ref_no": "R-WINNER"})
            return None

        store.claim_receipt_for_transfer = claim_lost

        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.reference_number == "R-WINNER"
        assert fake_logo.documents == []

    def test_receipt_without_status_is_transferred_as_draft(self, orchestrator, store, receipt_row):
        """Rows inserted without logo_status read as draft and can be claimed."""
        store.add(**{**receipt_row, "logo_status": None})

        outcome = orchestrator.transfer(office_request(receipt_row["id"]))

        assert outcome.success is True
        assert store.statuses_written(receipt_row["id"]) == ["processing", "success"]

    def test_rejected_claim_reports_current_status(self, orchestrator, store, fake_logo, receipt_id):
        store.claim_receipt_for_transfer = lambda rid, statuses: None

        outcome = orchestrator.transfer(office_request(receipt_id))

        assert outcome.success is False
        assert "from status 'pending'" in outcome.error_message
        assert "in progress" not in outcome.error_message
        assert fake_logo.documents == []

    def test_unknown_receipt(self, orchestrator, store):
        outcome = orchestrator.transfer(office_request("missing-id"))

        assert outcome.success is False
        assert "not found" in outcome.error_message
        assert store.writes == []

    def test_soft_deleted_receipt(self, orchestrator, store, receipt_row):
        store.add(**{**receipt_row, "is_deleted": True})

        outcome = orchestrator.transfer(office_request(receipt_row["id"]))

        assert outcome.success is False
        assert store.writes == []


class TestSessionRenewal:
    """Tests for session renewal after Logo rejects a token."""

    def test_rejected_token_is_renewed_once(self, store, receipt_id):
        client = Mock()
        client.request_token.side_effect = ["stale", "fresh"]
        client.create_expense_document.side_effect = [
            SessionRejectedError("Logo document error: 401", status_code=401),
            RemoteDocumentResult("R-2"),
        ]

        outcome = TransferOrchestrator(store, client).transfer(office_request(receipt_id))

        assert outcome.reference_number == "R-2"
        assert client.create_expense_document.call_args_list[1].args[0] == "fresh"
        assert store.statuses_written(receipt_id) == ["processing", "success"]

    def test_second_rejection_fails_receipt(self, store, receipt_id):
        client = Mock()
        client.request_token.side_effect = ["stale", "fresh"]
        client.create_expense_document.side_effect = SessionRejectedError("Logo document error: 401", status_code=401)

        outcome = TransferOrchestrator(store, client).transfer(office_request(receipt_id))

        assert outcome.success is False
        assert client.create_expense_document.call_count == 2
        assert store.rows[receipt_id]["logo_status"] == "failed"

    def test_cached_token_reused_across_transfers(self, store, fake_logo, receipt_row):
        store.add(**receipt_row)
        store.add(**{**receipt_row, "id": "second-receipt-0001"})
        orchestrator = TransferOrchestrator(store, fake_logo)

        orchestrator.transfer(office_request(receipt_row["id"]))
        orchestrator.transfer(office_request("second-receipt-0001"))

        assert fake_logo.token_requests == 1


class TestTransferToLogo:
    """Tests for the keyword façade."""

    def test_passes_description_and_project(self, orchestrator, fake_logo, receipt_id):
        outcome = orchestrator.transfer_to_logo(
            receipt_id, "GID.OFIS", "KA-001", description="Toner", project_code="PRJ-1"
        )

        assert outcome.success is True
        document = fake_logo.documents[0]
        assert document["DESCRIPTION"] == "Toner"
        assert document["PROJECT_CODE"] == "PRJ-1"

    def test_outcome_response_shapes(self, orchestrator, fake_logo, receipt_id):
        assert orchestrator.transfer_to_logo(receipt_id, "GID.OFIS", "KA-001").to_dict() == {
            "success": True,
            "logoRefNo": "778899",
        }
