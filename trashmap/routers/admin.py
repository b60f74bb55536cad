"""Admin triage router."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from trashmap.dependencies import CurrentAdmin, ReportRepoDep
from trashmap.lifecycle import ReportStatus
from trashmap.schemas.reports import (
    PriorityUpdateRequest,
    ReportStats,
    StatusUpdateRequest,
    WasteType,
)
from trashmap.utils.csv_export import reports_to_csv
from trashmap.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/admin/reports", tags=["Admin"])


@router.get("/stats", response_model=ReportStats)
async def get_report_stats(admin: CurrentAdmin, report_repo: ReportRepoDep) -> ReportStats:
    """Report counts overall and per status."""
    return await report_repo.get_stats()


@router.get("/export.csv")
async def export_reports_csv(
    admin: CurrentAdmin,
    report_repo: ReportRepoDep,
    waste_type: Optional[WasteType] = Query(None),
    status: Optional[ReportStatus] = Query(None),
) -> Response:
    """Download the filtered report list as CSV."""
    reports = await report_repo.list_filtered(waste_type=waste_type, status=status)
    filename = f"waste-reports-{datetime.now(timezone.utc).date().isoformat()}.csv"
    log.info("reports exported", uid=admin.uid, count=len(reports))
    return Response(
        content=reports_to_csv(reports),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/{report_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def update_report_status(
    report_id: UUID,
    request: StatusUpdateRequest,
    admin: CurrentAdmin,
    report_repo: ReportRepoDep,
) -> Response:
    """Assign, resolve, or reopen a report."""
    await report_repo.update_status(report_id, request.status, request.assigned_to)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{report_id}/priority", status_code=status.HTTP_204_NO_CONTENT)
async def update_report_priority(
    report_id: UUID,
    request: PriorityUpdateRequest,
    admin: CurrentAdmin,
    report_repo: ReportRepoDep,
) -> Response:
    """Set a report's priority."""
    await report_repo.update_priority(report_id, request.priority)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
