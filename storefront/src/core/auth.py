"""
Caller identity extraction for catalog requests.

The storefront does not authenticate anyone itself: the identity provider
issues short-lived session tokens, and the database evaluates them in its
row-level security policies. This module only locates the token on the
incoming request so it can be forwarded with each query.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.src.core.config import settings
from storefront.src.core.logging import get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Dependency returning the caller's access token, or None for anonymous callers.

    The token is read fresh on every request and never cached.

    Args:
        request: FastAPI request
        credentials: HTTP bearer token credentials

    Returns:
        Access token or None
    """
    if credentials and credentials.credentials:
        return credentials.credentials

    # Browsers send the session cookie instead of an Authorization header
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    logger.debug("Anonymous catalog request", extra={"path": request.url.path})
    return None
