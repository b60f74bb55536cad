"""In-process report store for tests and local development."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional
from uuid import UUID, uuid4

from trashmap.schemas.reports import WasteReport
from trashmap.stores.base import (
    SERVER_TIMESTAMP,
    BaseReportStore,
    ReportCursor,
    check_filters,
)
from trashmap.utils.logger import get_logger

log = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryReportStore(BaseReportStore):
    """
    Dict-backed report store.

    The store clock is strictly increasing: two writes never share a
    timestamp, even when the wall clock does not advance between them.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._records: dict[UUID, WasteReport] = {}
        self._clock = clock or _utcnow
        self._last_timestamp: Optional[datetime] = None

    def _now(self) -> datetime:
        ts = self._clock()
        if self._last_timestamp is not None and ts <= self._last_timestamp:
            ts = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = ts
        return ts

    def _resolve(self, values: Mapping[str, Any]) -> dict[str, Any]:
        now = None
        resolved = {}
        for key, value in values.items():
            if value is SERVER_TIMESTAMP:
                if now is None:
                    now = self._now()
                value = now
            resolved[key] = value
        return resolved

    @staticmethod
    def _matches(record: WasteReport, filters: Mapping[str, Any]) -> bool:
        return all(getattr(record, field) == value for field, value in filters.items())

    async def insert(self, values: Mapping[str, Any]) -> UUID:
        fields = self._resolve({k: v for k, v in values.items() if k not in ("id", "created_at")})
        report_id = uuid4()
        record = WasteReport.model_validate(
            {**fields, "id": report_id, "created_at": self._now()}
        )
        self._records[report_id] = record
        log.debug("memory store insert", report_id=str(report_id))
        return report_id

    async def get(self, report_id: UUID) -> Optional[WasteReport]:
        record = self._records.get(report_id)
        return record.model_copy(deep=True) if record is not None else None

    async def query(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[ReportCursor] = None,
    ) -> list[WasteReport]:
        filters = check_filters(filters)
        matches = [r for r in self._records.values() if self._matches(r, filters)]
        matches.sort(key=lambda r: (r.created_at, r.id), reverse=True)

        if start_after is not None:
            position = (start_after.created_at, start_after.report_id)
            matches = [r for r in matches if (r.created_at, r.id) < position]

        if limit is not None:
            matches = matches[:limit]
        return [r.model_copy(deep=True) for r in matches]

    async def update(self, report_id: UUID, values: Mapping[str, Any]) -> bool:
        record = self._records.get(report_id)
        if record is None:
            return False
        fields = self._resolve({k: v for k, v in values.items() if k not in ("id", "created_at")})
        self._records[report_id] = WasteReport.model_validate(
            {**record.model_dump(), **fields}
        )
        return True

    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        filters = check_filters(filters)
        return sum(1 for r in self._records.values() if self._matches(r, filters))
