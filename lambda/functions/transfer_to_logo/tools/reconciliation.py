"""
Transfer Reconciliation
=======================

Writes transfer state back to the receipt. Only the Logo transfer
state fields are ever written here.
"""

from datetime import datetime, timezone
from typing import Optional

from aws_lambda_powertools import Logger

from models import LogoStatus, TransferOutcome, TRANSFERABLE_STATUSES

logger = Logger()

MAX_ERROR_MESSAGE_LENGTH = 1000


class ReconciliationWriter:
    """Applies transfer attempts and their outcomes to the receipt store."""

    def __init__(self, store):
        self.store = store

    def mark_processing(self, receipt_id: str) -> Optional[dict]:
        """
        Claim the receipt for a transfer attempt.

        Returns:
            The updated row, or None if the receipt was not in a
            transferable status (another attempt owns it, or it already
            succeeded)
        """
        row = self.store.claim_receipt_for_transfer(
            receipt_id,
            tuple(status.value for status in TRANSFERABLE_STATUSES),
        )
        if row is None:
            logger.warning(f"Receipt {receipt_id} could not be claimed for transfer")
        else:
            logger.info(f"Receipt {receipt_id} marked as processing")
        return row

    def apply_outcome(self, receipt_id: str, outcome: TransferOutcome) -> None:
        """Persist a terminal transfer state."""
        if outcome.success:
            fields = {
                "logo_status": LogoStatus.SUCCESS.value,
                "logo_ref_no": outcome.reference_number,
                "logo_transferred_at": datetime.now(timezone.utc).isoformat(),
                "logo_error_message": None,
            }
        else:
            fields = {
                "logo_status": LogoStatus.FAILED.value,
                "logo_error_message": outcome.error_message[:MAX_ERROR_MESSAGE_LENGTH],
            }

        self.store.update_receipt(receipt_id, fields)
        logger.info(f"Receipt {receipt_id} marked as {fields['logo_status']}")
