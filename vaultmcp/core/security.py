import secrets
import logging
from typing import Optional

from fastapi.security.utils import get_authorization_scheme_param

from vaultmcp.errors import AuthError

logger = logging.getLogger("VaultMCP.security")

MISSING_HEADER_MESSAGE = "Missing or invalid authorization header"
INVALID_KEY_MESSAGE = "Invalid API key"


def generate_api_key() -> str:
    """Generate a fresh random API key for the HTTP server."""
    return secrets.token_urlsafe(32)


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a `Bearer <token>` header, or None."""
    if not authorization:
        return None
    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        return None
    return credentials


def verify_bearer(authorization: Optional[str], expected_key: str) -> None:
    """
    Check an Authorization header against the configured key.

    Raises AuthError with the client-facing message. An empty configured
    key rejects everything.
    """
    token = parse_bearer(authorization)
    if token is None:
        raise AuthError(MISSING_HEADER_MESSAGE)
    if not expected_key or not secrets.compare_digest(token.encode("utf-8"), expected_key.encode("utf-8")):
        logger.debug("Rejected bearer token %s", mask_key(token))
        raise AuthError(INVALID_KEY_MESSAGE)


def mask_key(key: str, visible: int = 8) -> str:
    """Return a log-safe prefix of a key."""
    if len(key) <= visible:
        return "*" * len(key)
    return key[:visible] + "..."
