"""
Supabase Storage client

Async HTTP client for the Storage REST API, limited to what generated
documents need: upload an object, delete an object and build its public URL.

API Base URL: {SUPABASE_URL}/storage/v1
Auth: service-role key in both the Authorization and apikey headers
"""

import logging
import uuid

import httpx

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when Supabase Storage returns an error response or is unreachable."""

    def __init__(self, status_code: int | None, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Storage error {status_code}: {message}")


def object_key(user_id: str, document_id: uuid.UUID, extension: str) -> str:
    """Path of a rendered file inside the bucket, scoped by owner and document."""
    return f"{user_id}/{document_id}.{extension}"


class SupabaseStorage:
    """Async client for one Supabase Storage bucket."""

    def __init__(self, base_url: str, service_key: str, bucket: str = "documents", timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _object_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Upload bytes under ``key`` and return the object's public URL.

        Raises:
            StorageError: On a non-2xx response or a transport failure.
        """
        headers = self._headers(content_type)
        headers["x-upsert"] = "false"
        response = await self._send("POST", key, headers=headers, content=data)
        if response.status_code >= 400:
            raise StorageError(response.status_code, _error_message(response))
        logger.info("Uploaded %s (%d bytes) to bucket %s", key, len(data), self.bucket)
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        """Delete the object at ``key``. A missing object counts as deleted.

        Raises:
            StorageError: On any other non-2xx response or a transport failure.
        """
        response = await self._send("DELETE", key, headers=self._headers())
        if response.status_code == 404:
            logger.warning("Object %s already absent from bucket %s", key, self.bucket)
            return
        if response.status_code >= 400:
            raise StorageError(response.status_code, _error_message(response))
        logger.info("Deleted %s from bucket %s", key, self.bucket)

    async def _send(self, method: str, key: str, **kwargs) -> httpx.Response:
        url = self._object_url(key)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(None, f"{method} {url} failed: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
