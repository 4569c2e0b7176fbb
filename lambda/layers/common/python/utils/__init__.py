"""
Logo Receipt Bridge - Common Utilities
======================================

Shared utilities for all Lambda functions.
"""

from .supabase_client import SupabaseClient
from .logo_client import (
    LogoClient,
    LogoConfig,
    RemoteErpClient,
    LogoAPIError,
    AuthenticationError,
    RemoteRejectionError,
    SessionRejectedError,
    TransientNetworkError,
)
from .fake_logo_client import FakeLogoClient
from .logo_session import LogoSessionProvider, get_logo_session
from .secrets import get_secret, get_all_secrets, require_secrets, MissingSecretError

__all__ = [
    "SupabaseClient",
    "LogoClient",
    "LogoConfig",
    "RemoteErpClient",
    "LogoAPIError",
    "AuthenticationError",
    "RemoteRejectionError",
    "SessionRejectedError",
    "TransientNetworkError",
    "FakeLogoClient",
    "LogoSessionProvider",
    "get_logo_session",
    "get_secret",
    "get_all_secrets",
    "require_secrets",
    "MissingSecretError",
]
