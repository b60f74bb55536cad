"""Schemas for waste report operations."""

from datetime import datetime
from enum import StrEnum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from trashmap.lifecycle import ReportStatus


class WasteType(StrEnum):
    ORGANIC = "organic"
    PLASTIC = "plastic"
    PAPER = "paper"
    GLASS = "glass"
    METAL = "metal"
    ELECTRONIC = "electronic"
    MEDICAL = "medical"
    CONSTRUCTION = "construction"
    HAZARDOUS = "hazardous"
    OTHER = "other"


WASTE_TYPE_LABELS: dict[WasteType, str] = {
    WasteType.ORGANIC: "Organic Waste",
    WasteType.PLASTIC: "Plastic",
    WasteType.PAPER: "Paper/Cardboard",
    WasteType.GLASS: "Glass",
    WasteType.METAL: "Metal",
    WasteType.ELECTRONIC: "E-waste",
    WasteType.MEDICAL: "Medical Waste",
    WasteType.CONSTRUCTION: "Construction Debris",
    WasteType.HAZARDOUS: "Hazardous Materials",
    WasteType.OTHER: "Other",
}


class ReportPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Location(BaseModel):
    """Geographic point. (0, 0) means the submitter never picked a location."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")

    @property
    def is_unset(self) -> bool:
        return self.lat == 0 and self.lng == 0


class ReportCreate(BaseModel):
    """Fields a submitter provides for a new report."""

    user_id: str = Field(..., min_length=1, description="Owner identifier")
    user_name: str = Field("", description="Display name at submission time")
    waste_type: WasteType = Field(..., description="Kind of waste")
    notes: str = Field("", description="Free-text notes")
    location: Location = Field(..., description="Where the waste is")
    address: str = Field("", description="Reverse-geocoded address")


class WasteReport(BaseModel):
    """A stored waste report."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Report ID")
    user_id: str = Field(..., description="Owner identifier")
    user_name: str = Field("", description="Display name at submission time")
    waste_type: WasteType
    notes: Optional[str] = None
    location: Location
    address: str = ""
    image_url: str
    status: ReportStatus = ReportStatus.PENDING
    priority: Optional[ReportPriority] = None
    assigned_to: Optional[str] = None
    created_at: datetime = Field(..., description="When the report was stored")
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @property
    def effective_priority(self) -> ReportPriority:
        """Priority used for display; unset counts as low."""
        return self.priority or ReportPriority.LOW


class ReportPage(BaseModel):
    """One page of the newest-first report feed."""

    reports: list[WasteReport]
    next_cursor: Optional[str] = Field(
        None, description="Token for the following page; null when this page is empty"
    )


class ReportStats(BaseModel):
    """Report counts for the admin dashboard."""

    total: int = 0
    pending: int = 0
    assigned: int = 0
    resolved: int = 0


class WasteTypeOption(BaseModel):
    """A selectable waste type with its display label."""

    value: WasteType
    label: str


class ReportCreatedResponse(BaseModel):
    id: UUID


class StatusUpdateRequest(BaseModel):
    status: ReportStatus
    assigned_to: Optional[str] = Field(None, description="Required when status is 'assigned'")


class PriorityUpdateRequest(BaseModel):
    priority: ReportPriority
