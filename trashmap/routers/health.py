"""Health check router."""

from datetime import datetime, timezone

from fastapi import APIRouter

from trashmap import __version__
from trashmap.clients.storage_client import SupabaseStorageClient
from trashmap.dependencies import ReportRepoDep, StorageClientDep
from trashmap.schemas.health import HealthResponse, ServiceStatus
from trashmap.utils.logger import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(report_repo: ReportRepoDep, storage: StorageClientDep) -> HealthResponse:
    """
    Health check for the report store and blob storage.

    Returns:
        HealthResponse with status and service details
    """
    services = {}
    overall_status = "ok"

    # Check report store
    try:
        stats = await report_repo.get_stats()
        services["report_store"] = ServiceStatus(
            status="healthy",
            message="Connected",
            details={"reports_count": stats.total},
        )
    except Exception as e:
        log.error("health check failed", service="report_store", error=str(e))
        services["report_store"] = ServiceStatus(status="unhealthy", message="Service unavailable")
        overall_status = "degraded"

    # Check blob storage configuration
    if isinstance(storage, SupabaseStorageClient) and not storage.is_configured:
        log.error("health check failed", service="storage", error="not configured")
        services["storage"] = ServiceStatus(status="unhealthy", message="Storage not configured")
        overall_status = "degraded"
    else:
        services["storage"] = ServiceStatus(
            status="healthy",
            message=f"Using {type(storage).__name__}",
        )

    return HealthResponse(
        status=overall_status,
        version=__version__,
        services=services,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
