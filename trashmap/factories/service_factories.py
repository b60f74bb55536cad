"""Factory functions for repositories."""

from sqlalchemy.ext.asyncio import AsyncSession

from trashmap.config import get_settings
from trashmap.factories.client_factories import get_memory_report_store, get_storage_client
from trashmap.repositories.report_repository import ReportRepository
from trashmap.stores.base import BaseReportStore
from trashmap.stores.sql_store import SqlReportStore


def get_report_store(db_session: AsyncSession) -> BaseReportStore:
    """
    Pick the report store for the configured backend.

    Note: Not cached because the SQL store depends on the request-scoped session.
    """
    settings = get_settings()
    if settings.report_store_backend == "memory":
        return get_memory_report_store()
    return SqlReportStore(db_session)


def get_report_repository(db_session: AsyncSession) -> ReportRepository:
    """
    Create ReportRepository with its store and blob storage.

    Args:
        db_session: Database session

    Returns:
        ReportRepository instance
    """
    settings = get_settings()
    return ReportRepository(
        store=get_report_store(db_session),
        storage=get_storage_client(),
        max_image_bytes=settings.max_image_bytes,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
        allow_direct_resolve=settings.allow_direct_resolve,
    )
