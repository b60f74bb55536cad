"""Repository for waste report operations."""

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Mapping, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from trashmap.clients.storage_client import BaseStorageClient, ImageUpload
from trashmap.exceptions import (
    NotFoundError,
    PersistenceError,
    QueryError,
    StoreError,
    UploadError,
    ValidationError,
)
from trashmap.lifecycle import (
    ReportStatus,
    build_priority_update,
    build_status_update,
    get_transition,
    normalize_assignee,
    parse_status,
)
from trashmap.schemas.reports import (
    ReportCreate,
    ReportPage,
    ReportPriority,
    ReportStats,
    WasteReport,
    WasteType,
)
from trashmap.stores.base import SERVER_TIMESTAMP, BaseReportStore, ReportCursor
from trashmap.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


def encode_cursor(report: WasteReport) -> str:
    """Build an opaque continuation token pointing at ``report``."""
    payload = json.dumps(
        {"created_at": report.created_at.isoformat(), "id": str(report.id)},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(token: str) -> ReportCursor:
    """Parse a continuation token produced by ``encode_cursor``."""
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
        return ReportCursor(
            created_at=datetime.fromisoformat(payload["created_at"]),
            report_id=UUID(payload["id"]),
        )
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError):
        raise ValidationError("Invalid pagination cursor", details={"field": "cursor"})


def _parse_enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={"field": field, "allowed": [e.value for e in enum_cls]},
        )


def _coerce_id(report_id: Union[UUID, str]) -> Optional[UUID]:
    if isinstance(report_id, UUID):
        return report_id
    try:
        return UUID(str(report_id))
    except ValueError:
        return None


class ReportRepository:
    """
    CRUD and query facade over a report store and a blob store.

    Query failures surface as QueryError, write failures as PersistenceError.
    Nothing is retried.
    """

    def __init__(
        self,
        store: BaseReportStore,
        storage: BaseStorageClient,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        default_page_size: int = 10,
        max_page_size: int = 100,
        allow_direct_resolve: bool = True,
    ):
        self.store = store
        self.storage = storage
        self.max_image_bytes = max_image_bytes
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.allow_direct_resolve = allow_direct_resolve

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _validate_create(
        self, data: Union[ReportCreate, Mapping[str, Any]], image: Optional[ImageUpload]
    ) -> ReportCreate:
        if not isinstance(data, ReportCreate):
            try:
                data = ReportCreate.model_validate(data)
            except PydanticValidationError as e:
                errors = [{k: v for k, v in err.items() if k != "ctx"} for err in e.errors()]
                raise ValidationError("Invalid report data", details={"errors": errors})

        if image is None or not image.content:
            raise ValidationError("An image of the waste is required", details={"field": "image"})
        if not image.content_type.startswith("image/"):
            raise ValidationError(
                "Uploaded file must be an image",
                details={"field": "image", "content_type": image.content_type},
            )
        if image.size > self.max_image_bytes:
            raise ValidationError(
                "Image is too large",
                details={"field": "image", "size": image.size, "max_size": self.max_image_bytes},
            )
        if data.location.is_unset:
            raise ValidationError("A location is required", details={"field": "location"})
        return data

    async def create_report(
        self, data: Union[ReportCreate, Mapping[str, Any]], image: Optional[ImageUpload]
    ) -> UUID:
        """
        Upload the report photo, then store the report as pending.

        The upload and the insert are separate writes. If the insert fails the
        uploaded photo is deleted on a best-effort basis before the error is
        raised.

        Args:
            data: Report fields (validated into ReportCreate)
            image: Photo of the waste

        Returns:
            The new report's ID

        Raises:
            ValidationError: Bad enum value, missing or invalid image, unset location
            UploadError: Photo upload failed
            PersistenceError: Record insert failed
        """
        data = self._validate_create(data, image)

        try:
            stored = await self.storage.upload(image, owner_id=data.user_id)
        except UploadError:
            raise
        except Exception as e:
            log.error("image upload failed", user_id=data.user_id, error=str(e))
            raise UploadError(f"Image upload failed: {e}") from e

        values = {
            **data.model_dump(),
            "image_url": stored.url,
            "status": ReportStatus.PENDING,
            "created_at": SERVER_TIMESTAMP,
        }

        try:
            report_id = await self.store.insert(values)
        except StoreError as e:
            log.error("report insert failed", user_id=data.user_id, error=str(e))
            await self._discard_upload(stored.path)
            raise PersistenceError("Failed to save report") from e

        log.info(
            "report created",
            report_id=str(report_id),
            user_id=data.user_id,
            waste_type=data.waste_type.value,
        )
        return report_id

    async def _discard_upload(self, path: str) -> None:
        try:
            deleted = await self.storage.delete(path)
        except Exception as e:
            log.warning("orphaned image cleanup failed", path=path, error=str(e))
            return
        if not deleted:
            log.warning("orphaned image left in storage", path=path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _query(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        start_after: Optional[ReportCursor] = None,
    ) -> list[WasteReport]:
        try:
            return await self.store.query(filters=filters, limit=limit, start_after=start_after)
        except StoreError as e:
            log.error("report query failed", filters=dict(filters or {}), error=str(e))
            raise QueryError("Failed to load reports") from e

    async def list_reports(
        self, page_size: Optional[int] = None, cursor: Optional[str] = None
    ) -> ReportPage:
        """
        Get one page of reports, newest first.

        Args:
            page_size: Maximum number of reports in the page; None uses the default
            cursor: Token from the previous page's ``next_cursor``; None for the first page

        Returns:
            ReportPage whose ``next_cursor`` fetches the following page, or is
            None when this page is empty
        """
        if page_size is None:
            page_size = self.default_page_size
        if page_size < 1 or page_size > self.max_page_size:
            raise ValidationError(
                f"page_size must be between 1 and {self.max_page_size}",
                details={"field": "page_size", "value": page_size},
            )
        start_after = decode_cursor(cursor) if cursor else None

        reports = await self._query(limit=page_size, start_after=start_after)
        next_cursor = encode_cursor(reports[-1]) if reports else None
        log.debug("report page loaded", count=len(reports), has_cursor=cursor is not None)
        return ReportPage(reports=reports, next_cursor=next_cursor)

    async def list_by_owner(self, user_id: str) -> list[WasteReport]:
        """All reports submitted by one user, newest first."""
        return await self._query(filters={"user_id": user_id})

    async def list_by_status(self, status: Union[ReportStatus, str]) -> list[WasteReport]:
        """All reports with the given status, newest first."""
        return await self._query(filters={"status": parse_status(status)})

    async def list_by_waste_type(self, waste_type: Union[WasteType, str]) -> list[WasteReport]:
        """All reports of the given waste type, newest first."""
        waste_type = _parse_enum(WasteType, waste_type, "waste_type")
        return await self._query(filters={"waste_type": waste_type})

    async def list_filtered(
        self,
        waste_type: Union[WasteType, str, None] = None,
        status: Union[ReportStatus, str, None] = None,
        limit: Optional[int] = None,
    ) -> list[WasteReport]:
        """Reports matching both dashboard filters, newest first. None means any."""
        filters: dict[str, Any] = {}
        if waste_type:
            filters["waste_type"] = _parse_enum(WasteType, waste_type, "waste_type")
        if status:
            filters["status"] = parse_status(status)
        return await self._query(filters=filters, limit=limit)

    async def get_by_id(self, report_id: Union[UUID, str]) -> Optional[WasteReport]:
        """Get a report by ID. A missing report is None, not an error."""
        key = _coerce_id(report_id)
        if key is None:
            return None
        try:
            return await self.store.get(key)
        except StoreError as e:
            log.error("report lookup failed", report_id=str(report_id), error=str(e))
            raise QueryError("Failed to load report") from e

    async def get_stats(self) -> ReportStats:
        """Count reports overall and per status."""
        try:
            total = await self.store.count()
            per_status = {
                status.value: await self.store.count({"status": status}) for status in ReportStatus
            }
        except StoreError as e:
            log.error("report stats failed", error=str(e))
            raise QueryError("Failed to count reports") from e
        return ReportStats(total=total, **per_status)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    async def _update(self, report_id: UUID, values: Mapping[str, Any]) -> None:
        try:
            updated = await self.store.update(report_id, values)
        except StoreError as e:
            log.error("report update failed", report_id=str(report_id), error=str(e))
            raise PersistenceError("Failed to update report") from e
        if not updated:
            raise NotFoundError("Report", str(report_id))

    async def update_status(
        self,
        report_id: Union[UUID, str],
        new_status: Union[ReportStatus, str],
        assigned_to: Optional[str] = None,
    ) -> None:
        """
        Move a report to a new status.

        Assigning needs a non-blank ``assigned_to``; this is checked before the
        store is touched. The move itself must be allowed by the lifecycle
        policy. Concurrent updates on the same report are last-write-wins.

        Raises:
            ValidationError: Unknown status or missing assignee
            InvalidTransitionError: Move not allowed from the current status
            NotFoundError: No report with this ID
        """
        target = parse_status(new_status)
        assignee = normalize_assignee(target, assigned_to)
        if assigned_to and target != ReportStatus.ASSIGNED:
            log.debug("assignee ignored", report_id=str(report_id), status=target.value)

        report = await self.get_by_id(report_id)
        if report is None:
            raise NotFoundError("Report", str(report_id))

        transition = get_transition(
            report.status, target, allow_direct_resolve=self.allow_direct_resolve
        )
        await self._update(report.id, build_status_update(transition, assignee))
        log.info(
            "report status updated",
            report_id=str(report.id),
            from_status=report.status.value,
            to_status=target.value,
            assigned_to=assignee,
        )

    async def update_priority(
        self, report_id: Union[UUID, str], priority: Union[ReportPriority, str]
    ) -> None:
        """Set a report's priority. Always allowed."""
        priority = _parse_enum(ReportPriority, priority, "priority")
        key = _coerce_id(report_id)
        if key is None:
            raise NotFoundError("Report", str(report_id))

        await self._update(key, build_priority_update(priority))
        log.info("report priority updated", report_id=str(key), priority=priority.value)
