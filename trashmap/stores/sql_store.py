"""Report store backed by an async SQLAlchemy session."""

import uuid
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trashmap.exceptions import StoreError
from trashmap.models.report import Report
from trashmap.schemas.reports import Location, WasteReport
from trashmap.stores.base import (
    SERVER_TIMESTAMP,
    BaseReportStore,
    ReportCursor,
    check_filters,
)
from trashmap.utils.logger import get_logger

log = get_logger(__name__)


def _to_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    """Map record fields to column values."""
    columns: dict[str, Any] = {}
    for key, value in values.items():
        if key == "location":
            location = value if isinstance(value, Location) else Location.model_validate(value)
            columns["latitude"] = location.lat
            columns["longitude"] = location.lng
        elif value is SERVER_TIMESTAMP:
            columns[key] = func.now()
        elif isinstance(value, Enum):
            columns[key] = value.value
        else:
            columns[key] = value
    return columns


def _to_domain(row: Report) -> WasteReport:
    return WasteReport(
        id=row.id,
        user_id=row.user_id,
        user_name=row.user_name,
        waste_type=row.waste_type,
        notes=row.notes,
        location=Location(lat=row.latitude, lng=row.longitude),
        address=row.address,
        image_url=row.image_url,
        status=row.status,
        priority=row.priority,
        assigned_to=row.assigned_to,
        created_at=row.created_at,
        updated_at=row.updated_at,
        resolved_at=row.resolved_at,
    )


class SqlReportStore(BaseReportStore):
    """
    Report store over PostgreSQL.

    ``SERVER_TIMESTAMP`` becomes ``now()`` so every timestamp comes from the
    database clock. Caller is responsible for committing the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _where(filters: Optional[Mapping[str, Any]]) -> list:
        return [getattr(Report, field) == value for field, value in _to_columns(check_filters(filters)).items()]

    async def insert(self, values: Mapping[str, Any]) -> UUID:
        columns = _to_columns({k: v for k, v in values.items() if k not in ("id", "created_at")})
        report = Report(id=uuid.uuid4(), **columns)
        try:
            self.session.add(report)
            await self.session.flush()
        except SQLAlchemyError as e:
            log.error("report insert failed", error=str(e))
            raise StoreError(str(e)) from e
        log.debug("report inserted", report_id=str(report.id))
        return report.id

    async def get(self, report_id: UUID) -> Optional[WasteReport]:
        try:
            result = await self.session.execute(select(Report).where(Report.id == report_id))
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        row = result.scalar_one_or_none()
        return _to_domain(row) if row is not None else None

    async def query(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[ReportCursor] = None,
    ) -> list[WasteReport]:
        stmt = select(Report).where(*self._where(filters))

        if start_after is not None:
            stmt = stmt.where(
                or_(
                    Report.created_at < start_after.created_at,
                    and_(
                        Report.created_at == start_after.created_at,
                        Report.id < start_after.report_id,
                    ),
                )
            )

        stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return [_to_domain(row) for row in result.scalars().all()]

    async def update(self, report_id: UUID, values: Mapping[str, Any]) -> bool:
        columns = _to_columns({k: v for k, v in values.items() if k not in ("id", "created_at")})
        try:
            result = await self.session.execute(
                update(Report).where(Report.id == report_id).values(**columns)
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            log.error("report update failed", report_id=str(report_id), error=str(e))
            raise StoreError(str(e)) from e
        return result.rowcount > 0

    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        try:
            result = await self.session.execute(
                select(func.count()).select_from(Report).where(*self._where(filters))
            )
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return result.scalar_one()
