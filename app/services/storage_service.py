"""Storage service for handling Supabase storage operations."""

from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import StorageError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing files in Supabase storage.

    Uploads never overwrite: an existing object at the target path makes the
    upload fail.
    """

    def __init__(self, bucket: Optional[str] = None):
        self.url = settings.supabase_url.rstrip("/")
        self.service_role_key = settings.supabase_service_role_key
        self.bucket = bucket or settings.storage_bucket
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def upload_bytes(
        self,
        path: str,
        content: bytes,
        content_type: str,
    ) -> Dict[str, Any]:
        """Upload raw bytes to Supabase storage.

        Args:
            path: Target path within the bucket
            content: File contents
            content_type: MIME type stored with the object

        Returns:
            Dict containing the upload result

        Raises:
            StorageError: If the upload fails or the path is already taken
        """
        upload_url = f"{self.base_api_url}/object/{self.bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={
                        **self.headers,
                        "Content-Type": content_type,
                        "x-upsert": "false",
                    },
                    content=content,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise StorageError("Failed to upload file", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise StorageError("Failed to upload file")

        LOGGER.info("File uploaded to storage", extra={"bucket": self.bucket, "path": path, "size_bytes": len(content)})
        return response.json()

    async def download_file(self, path: str) -> bytes:
        """Download an object's bytes.

        Raises:
            StorageError: If the object cannot be read
        """
        download_url = f"{self.base_api_url}/object/{self.bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    download_url,
                    headers=self.headers,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error downloading file from Supabase: {str(e)}", exc_info=True)
            raise StorageError("Failed to download file", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise StorageError("Failed to download file")

        return response.content

    async def remove_files(self, paths: List[str]) -> None:
        """Delete objects from the bucket.

        Raises:
            StorageError: If the delete request fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_api_url}/object/{self.bucket}",
                    headers=self.headers,
                    json={"prefixes": paths},
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error removing files from Supabase: {str(e)}", exc_info=True)
            raise StorageError("Failed to remove files", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to remove files from Supabase: {response.text}",
                extra={"bucket": self.bucket, "paths": paths, "status_code": response.status_code},
            )
            raise StorageError("Failed to remove files")

        LOGGER.info("Removed files from storage", extra={"bucket": self.bucket, "paths": paths})
