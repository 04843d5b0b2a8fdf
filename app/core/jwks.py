"""JWKS (JSON Web Key Set) service for Supabase JWT verification.

Fetches Supabase's signing keys and keeps them in memory for
``SUPABASE_JWKS_CACHE_TTL`` seconds.
"""

import asyncio
import time
from typing import Dict, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict

from app.core.config import settings
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWKKey(BaseModel):
    """JSON Web Key; RSA keys carry ``n``/``e``, EC keys ``crv``/``x``/``y``."""

    model_config = ConfigDict(extra="ignore")

    kid: str
    kty: str
    alg: Optional[str] = None
    use: Optional[str] = None
    n: Optional[str] = None
    e: Optional[str] = None
    crv: Optional[str] = None
    x: Optional[str] = None
    y: Optional[str] = None


class JWKSResponse(BaseModel):
    keys: list[JWKKey]


class JWKSService:
    """Fetches and caches Supabase JWKS keys behind an asyncio lock."""

    def __init__(
        self,
        supabase_url: str,
        cache_ttl: int = 3600,
        timeout: int = 30
    ):
        self.supabase_url = supabase_url.rstrip("/")
        self.jwks_url = f"{self.supabase_url}/auth/v1/.well-known/jwks.json"
        self.cache_ttl = cache_ttl
        self.timeout = timeout

        self._keys_cache: Optional[Dict[str, JWKKey]] = None
        self._cache_timestamp: Optional[float] = None
        self._lock = asyncio.Lock()

    async def get_keys(self) -> Dict[str, JWKKey]:
        """Get JWKS keys, using cache if valid.

        Raises:
            RuntimeError: If keys cannot be fetched
        """
        async with self._lock:
            if self._is_cache_valid():
                LOGGER.debug("Using cached JWKS keys")
                return self._keys_cache.copy()

            LOGGER.info("Fetching fresh JWKS keys from Supabase")
            keys = await self._fetch_keys()
            self._keys_cache = keys.copy()
            self._cache_timestamp = time.time()
            return keys

    async def get_key(self, kid: str) -> Optional[JWKKey]:
        keys = await self.get_keys()
        return keys.get(kid)

    def _is_cache_valid(self) -> bool:
        if self._keys_cache is None or self._cache_timestamp is None:
            return False
        return time.time() - self._cache_timestamp < self.cache_ttl

    async def _fetch_keys(self) -> Dict[str, JWKKey]:
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.jwks_url) as response:
                    if response.status != 200:
                        raise RuntimeError(f"JWKS endpoint returned {response.status}: {await response.text()}")

                    data = await response.json()
                    jwks_response = JWKSResponse(**data)
                    keys = {key.kid: key for key in jwks_response.keys}

                    LOGGER.info(f"Successfully fetched {len(keys)} JWKS keys")
                    return keys

        except aiohttp.ClientError as e:
            LOGGER.error(f"Network error fetching JWKS: {e}")
            raise RuntimeError(f"Failed to fetch JWKS keys: {e}") from e


# Global JWKS service instance
jwks_service = JWKSService(
    supabase_url=settings.supabase_url,
    cache_ttl=settings.supabase_jwks_cache_ttl,
)
