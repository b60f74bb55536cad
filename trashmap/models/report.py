"""WasteReport model for persisted citizen reports."""

import uuid
from datetime import datetime

from sqlalchemy import Float, Index, String, Text, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from trashmap.database import Base


class Report(Base):
    """A geolocated waste report with its triage state."""

    __tablename__ = "waste_reports"
    __table_args__ = (
        Index("ix_waste_reports_created_at_id", "created_at", "id"),
        Index("ix_waste_reports_user_id_created_at", "user_id", "created_at"),
        Index("ix_waste_reports_status_created_at", "status", "created_at"),
        Index("ix_waste_reports_waste_type_created_at", "waste_type", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Submitter
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Report content
    waste_type: Mapped[str] = mapped_column(String(32), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str] = mapped_column(Text, nullable=False)

    # Triage
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    priority: Mapped[str | None] = mapped_column(String(16))
    assigned_to: Mapped[str | None] = mapped_column(String(255))

    # Timestamps (database clock)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True))
    resolved_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True))

    def __repr__(self):
        return f"<Report(id='{self.id}', type='{self.waste_type}', status='{self.status}')>"
