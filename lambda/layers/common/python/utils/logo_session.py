"""
Logo Session Token Provider
===========================

Caches the Logo REST session token for the lifetime of the Lambda
execution context. Logo does not report an expiry, so a cached token
is kept until a call made with it is rejected.
"""

from typing import Optional

from aws_lambda_powertools import Logger

from .logo_client import LogoClient, LogoConfig, RemoteErpClient

logger = Logger()


class LogoSessionProvider:
    """
    Acquires and caches a Logo session token.

    No lock is held around the cache: acquiring a token is idempotent,
    so a concurrent reacquire only costs an extra auth call.
    """

    def __init__(self, client: RemoteErpClient):
        self.client = client
        self._cached_token: Optional[str] = None

    def acquire_token(self, force_refresh: bool = False) -> str:
        """
        Get a Logo session token, requesting a new one if needed.

        Args:
            force_refresh: Ignore the cached token

        Returns:
            Session token string

        Raises:
            AuthenticationError: If Logo refuses the credentials
        """
        if self._cached_token and not force_refresh:
            logger.debug("Using cached Logo session token")
            return self._cached_token

        logger.info("Requesting new Logo session token")
        self._cached_token = self.client.request_token()
        return self._cached_token

    def invalidate(self) -> None:
        """Drop the cached token after Logo rejected it."""
        if self._cached_token:
            logger.info("Invalidating rejected Logo session token")
        self._cached_token = None

    @property
    def has_token(self) -> bool:
        return self._cached_token is not None


# Singleton instance for convenience
_session_provider: Optional[LogoSessionProvider] = None


def get_logo_session(client: Optional[RemoteErpClient] = None) -> LogoSessionProvider:
    """
    Get the process-wide session provider.

    The first call fixes the client; later calls return the same provider.
    """
    global _session_provider

    if _session_provider is None:
        _session_provider = LogoSessionProvider(client or LogoClient(LogoConfig.from_secrets()))

    return _session_provider


def reset_logo_session() -> None:
    """Forget the process-wide provider (tests, credential rotation)."""
    global _session_provider
    _session_provider = None
