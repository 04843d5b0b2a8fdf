"""JWT verification for Supabase access tokens.

HS256 tokens are checked against the project's shared secret; RS256/ES256
tokens against the key named by ``kid`` in the project's JWKS.
"""

from typing import Any

import jwt

from app.core.config import settings
from app.core.jwks import JWKSService, jwks_service
from app.schemas.auth import JWTClaims
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")
REQUIRED_CLAIMS = ["sub", "exp", "iat", "iss"]


class JWTVerifier:
    """Verifier for Supabase access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str = "", keys: JWKSService = jwks_service):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Supabase JWT secret for HS256 verification
            keys: JWKS source for asymmetric tokens
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.keys = keys

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Args:
            token: JWT access token from the Authorization header

        Returns:
            Decoded and validated JWT claims

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired or untrusted
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg")

            if alg == "HS256":
                if not self.jwt_secret:
                    raise jwt.InvalidTokenError("HS256 token received but SUPABASE_JWT_SECRET is not configured")
                key: Any = self.jwt_secret
            elif alg in ASYMMETRIC_ALGORITHMS:
                kid = header.get("kid")
                if not kid:
                    raise jwt.InvalidTokenError("JWT header missing 'kid' (key ID)")
                jwk_key = await self.keys.get_key(kid)
                if jwk_key is None:
                    raise jwt.InvalidTokenError(f"No matching key found for kid: {kid}")
                key = jwt.PyJWK(jwk_key.model_dump(exclude_none=True), algorithm=alg).key
            else:
                raise jwt.InvalidTokenError(f"Unsupported algorithm: {alg}")

            payload = jwt.decode(
                token,
                key,
                algorithms=[alg],
                audience="authenticated",
                issuer=self.expected_issuer,
                options={"require": REQUIRED_CLAIMS},
            )
            claims = JWTClaims(**payload)
            LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
            return claims

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise
        except (RuntimeError, ValueError) as e:
            # JWKS fetch failures and malformed claims
            LOGGER.error(f"Token verification failed: {e}")
            raise jwt.InvalidTokenError("Token verification failed") from e


# Global JWT verifier instance
jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
)
