"""Waste reports router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from trashmap.clients.storage_client import ImageUpload
from trashmap.dependencies import CurrentUserRequired, ReportRepoDep
from trashmap.exceptions import NotFoundError
from trashmap.lifecycle import ReportStatus
from trashmap.schemas.reports import (
    WASTE_TYPE_LABELS,
    ReportCreatedResponse,
    ReportPage,
    WasteReport,
    WasteType,
    WasteTypeOption,
)
from trashmap.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    current_user: CurrentUserRequired,
    report_repo: ReportRepoDep,
    waste_type: str = Form(...),
    lat: float = Form(...),
    lng: float = Form(...),
    notes: str = Form(""),
    address: str = Form(""),
    image: Optional[UploadFile] = File(None),
) -> ReportCreatedResponse:
    """Submit a new waste report with a photo."""
    upload = None
    if image is not None:
        # One byte past the limit is enough for the size check to reject it
        upload = ImageUpload(
            filename=image.filename or "image",
            content=await image.read(report_repo.max_image_bytes + 1),
            content_type=image.content_type or "application/octet-stream",
        )

    report_id = await report_repo.create_report(
        {
            "user_id": current_user.uid,
            "user_name": current_user.display_name or current_user.email or "",
            "waste_type": waste_type,
            "notes": notes,
            "location": {"lat": lat, "lng": lng},
            "address": address,
        },
        upload,
    )
    return ReportCreatedResponse(id=report_id)


@router.get("", response_model=ReportPage)
async def list_reports(
    report_repo: ReportRepoDep,
    page_size: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
) -> ReportPage:
    """List reports newest first, one page at a time."""
    return await report_repo.list_reports(page_size=page_size, cursor=cursor)


@router.get("/waste-types", response_model=list[WasteTypeOption])
async def list_waste_types() -> list[WasteTypeOption]:
    """Waste types with display labels, in form order."""
    return [WasteTypeOption(value=t, label=WASTE_TYPE_LABELS[t]) for t in WasteType]


@router.get("/mine", response_model=list[WasteReport])
async def list_my_reports(
    current_user: CurrentUserRequired,
    report_repo: ReportRepoDep,
) -> list[WasteReport]:
    """List the signed-in user's reports."""
    return await report_repo.list_by_owner(current_user.uid)


@router.get("/filter", response_model=list[WasteReport])
async def filter_reports(
    report_repo: ReportRepoDep,
    waste_type: Optional[WasteType] = Query(None),
    status: Optional[ReportStatus] = Query(None),
) -> list[WasteReport]:
    """List reports matching a waste type and/or status."""
    return await report_repo.list_filtered(waste_type=waste_type, status=status)


@router.get("/{report_id}", response_model=WasteReport)
async def get_report(report_id: UUID, report_repo: ReportRepoDep) -> WasteReport:
    """Get a specific report by ID."""
    report = await report_repo.get_by_id(report_id)
    if report is None:
        raise NotFoundError("Report", str(report_id))
    return report
