"""Signed links to KYC documents in object storage."""

import logging
from urllib.parse import quote

import httpx

from kyc_admin.config import get_settings
from kyc_admin.services.errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_EXPIRY = 3600


class StorageService:
    """Service for issuing short-lived signed URLs to stored documents."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        self.base_url = (settings.supabase_url or "").rstrip("/")
        self.service_key = settings.supabase_service_role_key
        self.bucket = settings.kyc_bucket
        self.timeout = settings.storage_timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        """Check if the storage API is configured."""
        return bool(self.base_url and self.service_key)

    async def create_signed_url(self, path: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        """Create a signed URL for ``path`` in the KYC bucket.

        Args:
            path: Object path inside the bucket
            expires_in: Link lifetime in seconds

        Returns:
            Absolute URL that grants read access until it expires

        Raises:
            StorageError: if storage is not configured or refuses the request
        """
        if not self.is_configured:
            raise StorageError("Storage is not configured")

        object_path = quote(path.lstrip("/"), safe="/")
        url = f"{self.base_url}/storage/v1/object/sign/{self.bucket}/{object_path}"
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json={"expiresIn": expires_in})
        except httpx.HTTPError as e:
            logger.error(f"Storage request failed for {path}: {e}")
            raise StorageError(f"Storage request failed: {e}") from e

        if not response.is_success:
            raise StorageError(_error_message(response), status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise StorageError(f"Storage returned a non-JSON response: {e}") from e

        signed_path = payload.get("signedURL") if isinstance(payload, dict) else None
        if not signed_path:
            raise StorageError("Storage response did not contain a signed URL")

        return f"{self.base_url}/storage/v1{signed_path}"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Storage returned {response.status_code}"
    if not isinstance(payload, dict):
        return f"Storage returned {response.status_code}"
    return payload.get("message") or payload.get("error") or f"Storage returned {response.status_code}"