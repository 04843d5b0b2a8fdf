"""Lookup of user details in the Supabase Auth admin API."""

import httpx

from app.core.config import settings
from app.core.exceptions import APIClientError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class IdentityProvider:
    """Reads a subject's profile from Supabase Auth with the service role key."""

    def __init__(self):
        self.url = settings.supabase_url.rstrip("/")
        self.service_role_key = settings.supabase_service_role_key
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def get_primary_email(self, subject_id: str) -> str:
        """Return the subject's primary email.

        Subjects without an email get a stable placeholder address.

        Raises:
            APIClientError: If the admin API cannot be reached or rejects the lookup
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.url}/auth/v1/admin/users/{subject_id}",
                    headers=self.headers,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            raise APIClientError(f"Identity provider unreachable: {e}", original_error=e) from e

        if response.status_code != 200:
            raise APIClientError(
                f"Identity provider lookup failed with status {response.status_code}"
            )

        email = response.json().get("email")
        return email or f"{subject_id}@supabase.user"
