"""
Bridge Secrets
==============

Logo credentials and the Supabase service key live in one JSON secret
in AWS Secrets Manager. The secret is fetched once per Lambda execution
context and served from memory afterwards.

Keys:
    LOGO_API_URL, LOGO_USERNAME, LOGO_PASSWORD
    SUPABASE_URL, SUPABASE_SERVICE_KEY
"""

import json
import os
from typing import Any
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError
from aws_lambda_powertools import Logger

logger = Logger()

SECRET_NAME = os.environ.get("SECRETS_NAME", "logo-bridge-secrets")

_secrets_client = None


def _get_secrets_client():
    global _secrets_client
    if _secrets_client is None:
        _secrets_client = boto3.client("secretsmanager")
    return _secrets_client


@lru_cache(maxsize=1)
def get_all_secrets() -> dict[str, Any]:
    """
    Load the bridge secret.

    Raises:
        ClientError: If Secrets Manager refuses or cannot find the secret
    """
    try:
        response = _get_secrets_client().get_secret_value(SecretId=SECRET_NAME)
    except ClientError as e:
        logger.error(f"Could not load {SECRET_NAME}: {e.response.get('Error', {}).get('Code', 'Unknown')}")
        raise

    logger.info(f"Loaded bridge secrets from {SECRET_NAME}")
    return json.loads(response["SecretString"])


def get_secret(key: str, default: Any = None) -> Any:
    """Single value from the bridge secret, or default when the key is absent."""
    return get_all_secrets().get(key, default)


def require_secrets(*keys: str) -> dict[str, Any]:
    """
    Values for keys that must all be present and non-empty.

    Raises:
        MissingSecretError: Naming every absent key
    """
    values = {key: get_secret(key) for key in keys}
    missing = [key for key, value in values.items() if not value]
    if missing:
        raise MissingSecretError(f"{SECRET_NAME} is missing: {', '.join(missing)}")
    return values


def clear_secrets_cache():
    """Forget the loaded secret, e.g. after rotating Logo credentials."""
    get_all_secrets.cache_clear()
    logger.info("Secrets cache cleared")


class MissingSecretError(ValueError):
    """Raised when a required key is absent from the bridge secret."""
    pass
