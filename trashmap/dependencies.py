"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from trashmap.clients.storage_client import BaseStorageClient
from trashmap.database import get_db
from trashmap.exceptions import ForbiddenError, MissingTokenError
from trashmap.factories.client_factories import get_auth_backend, get_storage_client
from trashmap.factories.service_factories import get_report_repository
from trashmap.repositories.report_repository import ReportRepository
from trashmap.services.auth_service import AuthenticatedUser, BaseAuthBackend
from trashmap.utils.logger import get_logger

log = get_logger(__name__)


# Type aliases for cleaner router signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
AuthBackendDep = Annotated[BaseAuthBackend, Depends(get_auth_backend)]
StorageClientDep = Annotated[BaseStorageClient, Depends(get_storage_client)]


# ============================================================================
# Report Repository
# ============================================================================


def get_report_repository_dep(db: DbSession) -> ReportRepository:
    """Get ReportRepository with database session."""
    return get_report_repository(db)


ReportRepoDep = Annotated[ReportRepository, Depends(get_report_repository_dep)]


# ============================================================================
# Authentication Dependencies
# ============================================================================


async def get_current_user_required(
    auth_backend: AuthBackendDep,
    authorization: Annotated[str | None, Header(alias="Authorization")] = None,
) -> AuthenticatedUser:
    """Get current user, raise 401 if not authenticated."""
    if not authorization:
        raise MissingTokenError()

    return await auth_backend.verify_token(authorization)


CurrentUserRequired = Annotated[AuthenticatedUser, Depends(get_current_user_required)]


async def get_current_admin(user: CurrentUserRequired) -> AuthenticatedUser:
    """Get current user, raise 403 unless they hold the admin role."""
    if not user.is_admin:
        log.warning("admin access denied", uid=user.uid)
        raise ForbiddenError("Admin role required")
    return user


CurrentAdmin = Annotated[AuthenticatedUser, Depends(get_current_admin)]
