"""
Blob storage clients for report photos.

Usage:
    from trashmap.clients.storage_client import ImageUpload

    stored = await storage.upload(ImageUpload(filename, content, content_type), owner_id)
    stored.url   # publicly retrievable URL
    stored.path  # key inside the bucket, used for delete
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from trashmap.exceptions import UploadError
from trashmap.utils.logger import get_logger

log = get_logger(__name__)

OBJECT_PREFIX = "waste-images"
MAX_FILENAME_LENGTH = 50


@dataclass(frozen=True)
class ImageUpload:
    """A photo attached to a new report."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class StoredObject:
    url: str
    path: str


def build_object_path(filename: str, owner_id: str, now: Optional[datetime] = None) -> str:
    """
    Generate a storage key for an upload.

    Format: waste-images/{owner_id}/{timestamp}_{unique_id}_{safe_filename}
    Example: waste-images/u123/20240101_120000_a1b2c3d4_bottles.jpg
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y%m%d_%H%M%S")
    unique_id = uuid.uuid4().hex[:8]
    safe_owner = "".join(c if c.isalnum() or c in "-_" else "_" for c in owner_id) or "anonymous"
    # Keep only alphanumerics, dots, dashes and underscores
    safe_filename = "".join(c if c.isalnum() or c in ".-_" else "_" for c in filename) or "image"
    if len(safe_filename) > MAX_FILENAME_LENGTH:
        ext_idx = safe_filename.rfind(".")
        if ext_idx > 0:
            ext = safe_filename[ext_idx:]
            safe_filename = safe_filename[: MAX_FILENAME_LENGTH - len(ext)] + ext
        else:
            safe_filename = safe_filename[:MAX_FILENAME_LENGTH]
    return f"{OBJECT_PREFIX}/{safe_owner}/{timestamp}_{unique_id}_{safe_filename}"


class BaseStorageClient(ABC):
    """Abstract base class for blob storage backends."""

    @abstractmethod
    async def upload(self, image: ImageUpload, owner_id: str) -> StoredObject:
        """
        Store an image and return where it can be fetched.

        Raises:
            UploadError: If the object could not be written
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a stored object. Returns True when the object is gone."""
        pass


class SupabaseStorageClient(BaseStorageClient):
    """Uploads report photos to a public Supabase Storage bucket."""

    def __init__(
        self,
        url: str,
        service_key: str,
        bucket: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.key}",
            "apikey": self.key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload(self, image: ImageUpload, owner_id: str) -> StoredObject:
        if not self.is_configured:
            raise UploadError("Blob storage is not configured")

        path = build_object_path(image.filename, owner_id)
        upload_url = f"{self.url}/storage/v1/object/{self.bucket}/{path}"

        try:
            async with self._client() as client:
                response = await client.post(
                    upload_url,
                    content=image.content,
                    headers={**self._get_headers(), "Content-Type": image.content_type},
                )
        except httpx.TimeoutException:
            log.error("image upload timed out", path=path)
            raise UploadError(f"Upload timed out after {self.timeout:g} seconds")
        except httpx.RequestError as e:
            log.error("image upload request failed", path=path, error=str(e))
            raise UploadError(f"Upload request failed: {e}")

        if response.status_code not in (200, 201):
            detail = response.text[:500] if response.text else "Unknown error"
            log.error("image upload rejected", status_code=response.status_code, detail=detail)
            raise UploadError(
                f"Upload failed with status {response.status_code}",
                details={"status_code": response.status_code, "detail": detail},
            )

        log.info("image uploaded", path=path, size=image.size)
        return StoredObject(url=self.public_url(path), path=path)

    async def delete(self, path: str) -> bool:
        delete_url = f"{self.url}/storage/v1/object/{self.bucket}/{path}"
        try:
            async with self._client() as client:
                response = await client.delete(delete_url, headers=self._get_headers())
        except httpx.HTTPError as e:
            log.warning("image delete failed", path=path, error=str(e))
            return False

        # 404 means it is already gone
        deleted = response.status_code in (200, 204, 404)
        if deleted:
            log.info("image deleted", path=path)
        else:
            log.warning("image delete rejected", path=path, status_code=response.status_code)
        return deleted


class InMemoryStorageClient(BaseStorageClient):
    """Keeps uploaded objects in a dict. For tests and local runs."""

    def __init__(self, base_url: str = "memory://trashmap") -> None:
        self.base_url = base_url
        self.objects: dict[str, bytes] = {}

    async def upload(self, image: ImageUpload, owner_id: str) -> StoredObject:
        path = build_object_path(image.filename, owner_id)
        self.objects[path] = image.content
        return StoredObject(url=f"{self.base_url}/{path}", path=path)

    async def delete(self, path: str) -> bool:
        self.objects.pop(path, None)
        return True
