"""
Logo Transfer Orchestrator
==========================

Runs one transfer attempt for a receipt:

1. Validate the expense and settlement account selection
2. Claim the receipt ('processing')
3. Acquire a Logo session token
4. Map the receipt to a Logo expense voucher
5. Submit the voucher
6. Persist 'success' + reference or 'failed' + error message

Expected failures (Logo auth, Logo rejection, network) are returned as a
failed TransferOutcome, never raised. A 'failed' receipt is retried by
calling transfer again.
"""

from typing import Optional

from aws_lambda_powertools import Logger

from models import LogoStatus, Receipt, RemoteDocumentResult, TransferOutcome, TransferRequest
from utils.logo_client import LogoAPIError, RemoteErpClient, SessionRejectedError
from utils.logo_session import LogoSessionProvider

from tools.document_mapper import LOGO_DATE_FORMAT, map_to_document
from tools.reconciliation import ReconciliationWriter

logger = Logger()


class TransferOrchestrator:
    """
    Façade for transferring receipts to Logo.

    Args:
        store: Receipt store (get_receipt, update_receipt, claim_receipt_for_transfer)
        erp_client: Live or fake Logo client
        session: Session provider; defaults to one wrapping erp_client
        date_format: strftime format for Logo document dates
    """

    def __init__(
        self,
        store,
        erp_client: RemoteErpClient,
        session: Optional[LogoSessionProvider] = None,
        date_format: str = LOGO_DATE_FORMAT,
    ):
        self.store = store
        self.erp_client = erp_client
        self.session = session or LogoSessionProvider(erp_client)
        self.writer = ReconciliationWriter(store)
        self.date_format = date_format

    def transfer_to_logo(
        self,
        receipt_id: str,
        expense_code: str,
        cash_account_code: str,
        description: Optional[str] = None,
        project_code: Optional[str] = None,
    ) -> TransferOutcome:
        """Transfer a receipt to Logo. See transfer()."""
        return self.transfer(TransferRequest(
            receipt_id=receipt_id,
            expense_code=expense_code,
            cash_account_code=cash_account_code,
            description=description,
            project_code=project_code,
        ))

    def transfer(self, request: TransferRequest) -> TransferOutcome:
        """
        Run one transfer attempt.

        Raises:
            ValidationError: If receipt id, expense code or account code is
                missing (nothing is read or written)
        """
        validate_request(request)
        receipt_id = request.receipt_id

        receipt_data = self.store.get_receipt(receipt_id)
        if not receipt_data:
            logger.warning(f"Receipt {receipt_id} not found")
            return TransferOutcome.failed(f"Receipt not found: {receipt_id}")

        receipt = Receipt.from_dict(receipt_data)
        if receipt.logo_status == LogoStatus.SUCCESS:
            return self._already_transferred(receipt)

        claimed = self.writer.mark_processing(receipt_id)
        if claimed is None:
            return self._claim_rejected(receipt_id)

        logger.info(
            f"Transferring receipt {receipt_id} to Logo",
            extra={"expense_code": request.expense_code, "cash_account_code": request.cash_account_code},
        )

        try:
            result = self._submit(Receipt.from_dict({**receipt_data, **claimed}), request)
            outcome = TransferOutcome.succeeded(result.reference_number)
        except LogoAPIError as e:
            logger.error(f"Logo transfer failed for {receipt_id}: {e}")
            outcome = TransferOutcome.failed(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error transferring {receipt_id}: {e}")
            outcome = TransferOutcome.failed(str(e) or e.__class__.__name__)

        self.writer.apply_outcome(receipt_id, outcome)
        return outcome

    def _submit(self, receipt: Receipt, request: TransferRequest) -> RemoteDocumentResult:
        """Acquire a session, map and submit; renews the session once on rejection."""
        token = self.session.acquire_token()

        payload = map_to_document(
            receipt,
            request.expense_code,
            request.cash_account_code,
            description=request.description,
            project_code=request.project_code,
            date_format=self.date_format,
        )

        try:
            return self.erp_client.create_expense_document(token, payload)
        except SessionRejectedError:
            logger.info("Logo rejected the session token, renewing")
            self.session.invalidate()
            token = self.session.acquire_token(force_refresh=True)
            return self.erp_client.create_expense_document(token, payload)

    def _already_transferred(self, receipt: Receipt) -> TransferOutcome:
        """Re-submitting a transferred receipt is a no-op returning its reference."""
        logger.info(f"Receipt {receipt.id} already transferred as {receipt.logo_ref_no}")
        if receipt.logo_ref_no:
            return TransferOutcome.succeeded(receipt.logo_ref_no)
        return TransferOutcome.failed(f"Receipt {receipt.id} is marked transferred but has no Logo reference")

    def _claim_rejected(self, receipt_id: str) -> TransferOutcome:
        current = self.store.get_receipt(receipt_id)
        if not current:
            return TransferOutcome.failed(f"Receipt not found: {receipt_id}")

        receipt = Receipt.from_dict(current)
        if receipt.logo_status == LogoStatus.SUCCESS:
            return self._already_transferred(receipt)
        if receipt.logo_status == LogoStatus.PROCESSING:
            return TransferOutcome.failed(f"A Logo transfer for receipt {receipt_id} is already in progress")
        return TransferOutcome.failed(
            f"Receipt {receipt_id} could not be claimed for transfer from status '{receipt.logo_status.value}'"
        )


def validate_request(request: TransferRequest) -> None:
    """Reject requests missing the receipt id or the Logo mapping codes."""
    fields = {
        "receiptId": request.receipt_id,
        "expenseCode": request.expense_code,
        "cashAccountCode": request.cash_account_code,
    }
    missing = [name for name, value in fields.items() if not isinstance(value, str) or not value.strip()]

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class ValidationError(Exception):
    """Raised when a transfer request is incomplete."""
    pass
