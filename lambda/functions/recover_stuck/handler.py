"""
Recover Stuck Transfers Lambda Handler
======================================

Scheduled function that runs every 15 minutes to recover receipts
stuck in 'processing' for more than STUCK_THRESHOLD_MINUTES (the
transfer Lambda was killed or timed out mid-attempt).

Stuck receipts are marked 'failed' so the user can retry them; they
are never resubmitted automatically, since Logo may already hold the
document.
"""

import json
import os

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from utils.supabase_client import SupabaseClient

logger = Logger()
metrics = Metrics()
tracer = Tracer()

# Stuck threshold in minutes
STUCK_THRESHOLD_MINUTES = int(os.environ.get("STUCK_THRESHOLD_MINUTES", "10"))

STUCK_ERROR_MESSAGE = (
    "Logo transfer did not complete. Check Logo for a document with this "
    "receipt's number before retrying."
)


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """
    Recover stuck transfers.

    Triggered by CloudWatch Events schedule (every 15 minutes).
    """
    logger.info("Starting stuck transfer recovery")

    try:
        supabase = SupabaseClient()
        recovered = recover_stuck_receipts(supabase, STUCK_THRESHOLD_MINUTES)

        metrics.add_metric(name="StuckTransfersRecovered", unit=MetricUnit.Count, value=recovered)

        return {
            "statusCode": 200,
            "body": json.dumps({"recovered": recovered})
        }

    except Exception as e:
        logger.exception(f"Error in stuck recovery: {e}")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(e)})
        }


def recover_stuck_receipts(supabase, minutes_threshold: int) -> int:
    """Mark receipts stuck in 'processing' as 'failed'. Returns the number recovered."""
    stuck_receipts = supabase.get_stuck_receipts(minutes_threshold=minutes_threshold)

    if not stuck_receipts:
        logger.info("No stuck receipts found")
        return 0

    recovered = 0
    for receipt in stuck_receipts:
        receipt_id = receipt.get("id")
        if supabase.fail_stuck_receipt(receipt_id, STUCK_ERROR_MESSAGE):
            recovered += 1
            logger.warning(f"Marked stuck receipt {receipt_id} as failed")
        else:
            logger.info(f"Receipt {receipt_id} finished before recovery")

    return recovered
