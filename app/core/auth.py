"""Authentication dependencies for FastAPI routes."""

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.exceptions import AuthenticationError
from app.core.jwt import jwt_verifier
from app.schemas.auth import CurrentUser
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Get the authenticated subject from the bearer token.

    Raises:
        AuthenticationError: If the token is missing or fails verification
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise AuthenticationError("Authorization header missing")

    try:
        claims = await jwt_verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid authentication token", original_error=e) from e

    return CurrentUser(id=claims.sub, email=claims.email, role=claims.role)
