"""
Get Logo Data Lambda Handler
============================

Returns Logo reference data for the receipt mapping screen:
service cards (expense categories) and cash/bank accounts.
Serves the built-in fixtures when Logo is not configured.
"""

import json
import os

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import ExpenseCategory, SettlementAccount
from utils.logo_client import LogoClient, LogoConfig, RemoteErpClient
from utils.fake_logo_client import FakeLogoClient
from utils.logo_session import LogoSessionProvider, get_logo_session

logger = Logger()
metrics = Metrics()
tracer = Tracer()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

SERVICE_CARDS = "service_cards"
CASH_ACCOUNTS = "cash_accounts"


def build_reference_client() -> RemoteErpClient:
    """Live Logo client, or fixtures when Logo is not configured."""
    if os.environ.get("LOGO_CLIENT_MODE", "live") == "fake":
        return FakeLogoClient()

    config = LogoConfig.from_secrets()
    if not config.is_configured:
        logger.warning("Logo API not configured, serving fixture reference data")
        return FakeLogoClient()

    return LogoClient(config)


def list_expense_categories(client: RemoteErpClient, session: LogoSessionProvider) -> list[ExpenseCategory]:
    return client.list_service_cards(session.acquire_token())


def list_settlement_accounts(client: RemoteErpClient, session: LogoSessionProvider) -> list[SettlementAccount]:
    return client.list_cash_accounts(session.acquire_token())


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """
    Fetch reference data.

    Expected payload:
    {"type": "service_cards" | "cash_accounts"}
    """
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": "ok"}

    try:
        body = event.get("body") or "{}"
        if isinstance(body, str):
            body = json.loads(body)
        data_type = body.get("type") if isinstance(body, dict) else None

        if data_type not in (SERVICE_CARDS, CASH_ACCOUNTS):
            return _json_response(400, {"error": f"Unknown type: {data_type}"})

        client = build_reference_client()
        session = get_logo_session(client) if isinstance(client, LogoClient) else LogoSessionProvider(client)

        if data_type == SERVICE_CARDS:
            items = list_expense_categories(client, session)
        else:
            items = list_settlement_accounts(client, session)

        logger.info(f"Returning {len(items)} {data_type}")
        metrics.add_metric(name="ReferenceDataRequests", unit=MetricUnit.Count, value=1)
        return _json_response(200, [item.to_dict() for item in items])

    except Exception as e:
        logger.exception(f"get-logo-data error: {e}")
        return _json_response(500, {"error": str(e)})


def _json_response(status_code: int, data) -> dict:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(data, ensure_ascii=False),
    }
