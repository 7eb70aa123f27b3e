"""Authentication dependencies for API endpoints."""

import logging
import os
import secrets

from fastapi import HTTPException, Query, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.reminders.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

security = HTTPBearer()

# The cron secret may arrive as a query parameter instead of a header
cron_security = HTTPBearer(auto_error=False)


def get_api_token() -> str:
    """Retrieve the API authentication token from environment.

    :returns: The configured API token.
    :raises ConfigurationError: If API_AUTH_TOKEN is not set.
    """
    token = os.environ.get("API_AUTH_TOKEN")
    if not token:
        raise ConfigurationError(
            "API authentication token not configured. Set API_AUTH_TOKEN environment variable."
        )
    return token


def get_cron_secret() -> str:
    """Retrieve the secret shared with the external scheduler.

    :returns: The configured cron secret.
    :raises ConfigurationError: If CRON_SECRET is not set.
    """
    secret = os.environ.get("CRON_SECRET")
    if not secret:
        raise ConfigurationError(
            "Cron secret not configured. Set CRON_SECRET environment variable."
        )
    return secret


def verify_token(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> str:
    """Verify the Bearer token from request headers.

    :param credentials: The HTTP Authorisation credentials.
    :returns: The validated token.
    :raises HTTPException: If token is invalid or missing.
    """
    try:
        expected_token = get_api_token()
    except ConfigurationError as e:
        logger.error(f"API token configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication not configured",
        ) from e

    if not secrets.compare_digest(credentials.credentials.encode(), expected_token.encode()):
        logger.warning("Invalid API token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return credentials.credentials


def verify_cron_secret(
    secret: str | None = Query(None, description="Cron secret, for schedulers without headers"),
    credentials: HTTPAuthorizationCredentials | None = Security(cron_security),
) -> None:
    """Verify the cron secret from the ``secret`` query parameter or a Bearer header.

    :param secret: Secret passed as a query parameter.
    :param credentials: Bearer credentials, if sent.
    :raises HTTPException: 500 if no secret is configured, 401 if neither value matches.
    """
    try:
        expected_secret = get_cron_secret()
    except ConfigurationError as e:
        logger.error(f"Cron secret configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Cron authentication not configured",
        ) from e

    provided = [secret, credentials.credentials if credentials else None]
    # Compared as bytes; compare_digest rejects non-ASCII str
    if not any(
        value and secrets.compare_digest(value.encode(), expected_secret.encode())
        for value in provided
    ):
        logger.warning("Invalid cron secret provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
