"""
Transfer To Logo Lambda Handler
===============================

Lambda entry point for transferring a reviewed receipt to Logo Tiger.
Triggered by API Gateway from the mobile app.
"""

import json
import os
from typing import Optional

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import TransferOutcome, TransferRequest
from utils.supabase_client import SupabaseClient
from utils.logo_client import LogoClient, LogoConfig, RemoteErpClient
from utils.fake_logo_client import FakeLogoClient
from utils.logo_session import get_logo_session

from transfer import TransferOrchestrator, ValidationError

# Initialize AWS Lambda Powertools
logger = Logger()
metrics = Metrics()
tracer = Tracer()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

_erp_client: Optional[RemoteErpClient] = None


def get_erp_client() -> RemoteErpClient:
    """Live Logo client, or the in-memory one when LOGO_CLIENT_MODE=fake."""
    global _erp_client
    if _erp_client is None:
        if os.environ.get("LOGO_CLIENT_MODE", "live") == "fake":
            logger.info("Using in-memory Logo client")
            _erp_client = FakeLogoClient()
        else:
            _erp_client = LogoClient(LogoConfig.from_secrets())
    return _erp_client


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """
    Transfer a receipt to Logo.

    Expected payload:
    {
        "receiptId": "uuid",
        "expenseCode": "GID.OFIS",
        "cashAccountCode": "KA-001",
        "description": "optional override",
        "projectCode": "optional"
    }
    """
    if _http_method(event) == "OPTIONS":
        return _cors_preflight_response()

    logger.info("Received Logo transfer request", extra={"event": event})

    try:
        request = TransferRequest.from_dict(_parse_request_body(event))
        outcome = transfer_receipt(request)

    except ValidationError as e:
        logger.warning(f"Invalid transfer request: {e}")
        metrics.add_metric(name="TransferValidationErrors", unit=MetricUnit.Count, value=1)
        return _error_response(400, str(e))

    except Exception as e:
        logger.exception(f"Unhandled error transferring receipt: {e}")
        metrics.add_metric(name="TransferErrors", unit=MetricUnit.Count, value=1)
        return _error_response(500, str(e))

    _record_metrics(outcome)
    return _json_response(200, outcome.to_dict())


@tracer.capture_method
def transfer_receipt(request: TransferRequest) -> TransferOutcome:
    """Build the orchestrator from the configured collaborators and run one attempt."""
    erp_client = get_erp_client()
    orchestrator = TransferOrchestrator(
        store=SupabaseClient(),
        erp_client=erp_client,
        session=get_logo_session(erp_client),
    )
    return orchestrator.transfer(request)


def _record_metrics(outcome: TransferOutcome) -> None:
    """Record CloudWatch metrics."""
    metrics.add_metric(name="TransfersAttempted", unit=MetricUnit.Count, value=1)

    if outcome.success:
        metrics.add_metric(name="TransfersSucceeded", unit=MetricUnit.Count, value=1)
    else:
        metrics.add_metric(name="TransfersFailed", unit=MetricUnit.Count, value=1)


def _http_method(event: dict) -> str:
    return event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")


def _parse_request_body(event: dict) -> dict:
    """Parse request body from API Gateway event."""
    body = event.get("body") or "{}"
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e}") from e
    return body if isinstance(body, dict) else {}


def _json_response(status_code: int, data: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(data),
    }


def _error_response(status_code: int, message: str) -> dict:
    """Create error API Gateway response."""
    return _json_response(status_code, {"error": message})


def _cors_preflight_response() -> dict:
    return {"statusCode": 200, "headers": CORS_HEADERS, "body": "ok"}
