"""Factory functions for storage, auth, and in-process backends."""

from functools import lru_cache

from trashmap.clients.storage_client import (
    BaseStorageClient,
    InMemoryStorageClient,
    SupabaseStorageClient,
)
from trashmap.config import get_settings
from trashmap.services.auth_service import (
    BaseAuthBackend,
    ClerkAuthBackend,
    InMemoryAuthBackend,
)
from trashmap.stores.memory_store import InMemoryReportStore


@lru_cache(maxsize=1)
def get_storage_client() -> BaseStorageClient:
    """
    Create singleton blob storage client for the configured backend.

    Returns:
        BaseStorageClient instance
    """
    settings = get_settings()
    if settings.storage_backend == "memory":
        return InMemoryStorageClient()
    return SupabaseStorageClient(
        url=settings.supabase_url,
        service_key=settings.supabase_service_key,
        bucket=settings.supabase_storage_bucket,
        timeout=settings.upload_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_auth_backend() -> BaseAuthBackend:
    """
    Create singleton auth backend for the configured provider.

    Returns:
        BaseAuthBackend instance
    """
    settings = get_settings()
    if settings.auth_backend == "memory":
        return InMemoryAuthBackend(admin_emails=settings.get_admin_emails_list())
    return ClerkAuthBackend(allowed_domain=settings.clerk_domain)


@lru_cache(maxsize=1)
def get_memory_report_store() -> InMemoryReportStore:
    """Process-wide in-memory report store, used when report_store_backend is 'memory'."""
    return InMemoryReportStore()
