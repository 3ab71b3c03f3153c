"""BunnyCDN storage adapter for attachment bytes."""

from __future__ import annotations

import logging

import requests

from oppflow.core.config import Config, get_config
from oppflow.core.exceptions import BlobStoreError, ConfigurationError

logger = logging.getLogger(__name__)

STORAGE_BASE_URL = "https://storage.bunnycdn.com"


class BunnyBlobStore:
    """``put``/``delete`` against a Bunny storage zone. Single attempt, no retries."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None) -> None:
        self.config = config or get_config()
        self.http = session or requests.Session()

    def _storage_url(self, path: str) -> str:
        if not self.config.blob_store_configured:
            raise ConfigurationError("BunnyCDN credentials not configured.")
        return f"{STORAGE_BASE_URL}/{self.config.BUNNY_STORAGE_ZONE_NAME}/{path.lstrip('/')}"

    def public_url(self, path: str) -> str:
        if self.config.BUNNY_CDN_BASE_URL:
            return f"{self.config.BUNNY_CDN_BASE_URL.rstrip('/')}/{path.lstrip('/')}"
        return self._storage_url(path)

    def put(self, path: str, data: bytes, content_type: str) -> str:
        url = self._storage_url(path)
        try:
            response = self.http.put(
                url,
                data=data,
                headers={"AccessKey": self.config.BUNNY_STORAGE_API_KEY or "", "Content-Type": content_type},
                timeout=self.config.BLOB_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as exc:
            raise BlobStoreError(f"Blob upload failed: {exc}") from exc
        if not response.ok:
            raise BlobStoreError(f"Blob upload failed: {response.status_code} {response.text}")
        logger.info("blob.put", extra={"event": "blob.put", "path": path, "size": len(data)})
        return self.public_url(path)

    def delete(self, path: str) -> None:
        """Delete ``path``; a missing blob counts as already deleted."""
        url = self._storage_url(path)
        try:
            response = self.http.delete(
                url,
                headers={"AccessKey": self.config.BUNNY_STORAGE_API_KEY or ""},
                timeout=self.config.BLOB_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as exc:
            raise BlobStoreError(f"Blob delete failed: {exc}") from exc
        if response.status_code == 404:
            return
        if not response.ok:
            raise BlobStoreError(f"Blob delete failed: {response.status_code} {response.text}")
