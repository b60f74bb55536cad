"""Report store interface.

A report store is an opaque collection of report records keyed by a
store-assigned UUID. It supports insert, point lookup, merge update, count,
and an equality-filtered query ordered by ``created_at`` descending with a
limit and a resume cursor.

Writes may carry ``SERVER_TIMESTAMP`` as a field value; the store replaces it
with its own clock at write time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional
from uuid import UUID

if TYPE_CHECKING:
    from trashmap.schemas.reports import WasteReport


class _ServerTimestamp:
    """Sentinel for "use the store's clock"."""

    _instance: Optional[_ServerTimestamp] = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

# Fields a query may filter on by equality
QUERYABLE_FIELDS = frozenset({"user_id", "status", "waste_type"})


@dataclass(frozen=True, slots=True)
class ReportCursor:
    """Position of the last record of a page: ``(created_at, id)``."""

    created_at: datetime
    report_id: UUID


def check_filters(filters: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return filters as a dict, rejecting fields the store cannot query."""
    filters = dict(filters or {})
    unknown = set(filters) - QUERYABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported filter fields: {sorted(unknown)}")
    return filters


class BaseReportStore(ABC):
    """Abstract base class for report persistence backends."""

    @abstractmethod
    async def insert(self, values: Mapping[str, Any]) -> UUID:
        """
        Insert a new record.

        Args:
            values: Record fields, without ``id``. ``created_at`` is always
                assigned by the store.

        Returns:
            The new record's ID

        Raises:
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, report_id: UUID) -> Optional[WasteReport]:
        """Return the record with ``report_id`` or None."""
        pass

    @abstractmethod
    async def query(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[ReportCursor] = None,
    ) -> list[WasteReport]:
        """
        Return records matching every equality filter, newest first.

        Records are ordered by ``(created_at, id)`` descending. When
        ``start_after`` is given, only records strictly after that position
        are returned.
        """
        pass

    @abstractmethod
    async def update(self, report_id: UUID, values: Mapping[str, Any]) -> bool:
        """
        Merge ``values`` into an existing record. Unspecified fields are untouched.

        Returns:
            False if no record has ``report_id``
        """
        pass

    @abstractmethod
    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        """Count records matching every equality filter."""
        pass
