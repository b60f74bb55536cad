"""Shared pytest fixtures for router integration tests."""

import pytest
import uuid
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from trashmap.clients.storage_client import InMemoryStorageClient
from trashmap.lifecycle import ReportStatus
from trashmap.schemas.reports import (
    Location,
    ReportPage,
    ReportStats,
    WasteReport,
    WasteType,
)
from trashmap.services.auth_service import AuthenticatedUser, InMemoryAuthBackend, UserRole


# Mock database before importing app to avoid connection issues
@pytest.fixture(autouse=True)
def mock_database_init():
    """Mock database initialization for all router tests."""
    with ExitStack() as stack:
        stack.enter_context(patch("trashmap.main.init_db", new_callable=AsyncMock))
        mock_engine = stack.enter_context(patch("trashmap.main.engine"))
        mock_engine.dispose = AsyncMock()
        yield


@pytest.fixture
def mock_db_session():
    """Create a mock AsyncSession for router tests."""
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def sample_report():
    """Factory fixture for WasteReport objects."""

    def _make(**overrides):
        fields = {
            "id": uuid.uuid4(),
            "user_id": "user_citizen",
            "user_name": "Dana",
            "waste_type": WasteType.PLASTIC,
            "notes": "Bottles by the river",
            "location": Location(lat=12.97, lng=77.59),
            "address": "MG Road",
            "image_url": "https://cdn.example.com/waste-images/x.jpg",
            "status": ReportStatus.PENDING,
            "created_at": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return WasteReport(**fields)

    return _make


@pytest.fixture
def mock_report_repo():
    """Create a mock ReportRepository."""
    repo = AsyncMock()
    repo.max_image_bytes = 5 * 1024 * 1024
    repo.create_report = AsyncMock(return_value=uuid.uuid4())
    repo.list_reports = AsyncMock(return_value=ReportPage(reports=[], next_cursor=None))
    repo.list_by_owner = AsyncMock(return_value=[])
    repo.list_filtered = AsyncMock(return_value=[])
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_stats = AsyncMock(return_value=ReportStats())
    repo.update_status = AsyncMock(return_value=None)
    repo.update_priority = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def memory_auth_backend():
    """In-memory accounts; ops@example.com signs up as admin."""
    return InMemoryAuthBackend(admin_emails=["ops@example.com"], bcrypt_rounds=4)


@pytest.fixture
def citizen_user():
    return AuthenticatedUser(
        uid="user_citizen", email="dana@example.com", display_name="Dana", role=UserRole.CITIZEN
    )


@pytest.fixture
def admin_user():
    return AuthenticatedUser(
        uid="user_admin", email="ops@example.com", display_name="Ops", role=UserRole.ADMIN
    )


def _create_test_client(
    mock_db_session,
    mock_report_repo,
    auth_backend,
    *,
    user=None,
    storage=None,
):
    """Build a TestClient with infra dependencies overridden.

    When user is provided, token verification is bypassed and every request
    runs as that user. When omitted, auth dependencies run against the given
    backend so tests can assert 401 and 403 behaviour.
    """
    from trashmap.main import app
    from trashmap.database import get_db
    from trashmap.dependencies import get_current_user_required, get_report_repository_dep
    from trashmap.factories.client_factories import get_auth_backend, get_storage_client

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_report_repository_dep] = lambda: mock_report_repo
    app.dependency_overrides[get_auth_backend] = lambda: auth_backend
    app.dependency_overrides[get_storage_client] = lambda: storage or InMemoryStorageClient()

    if user is not None:
        app.dependency_overrides[get_current_user_required] = lambda: user

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def client(mock_db_session, mock_report_repo, memory_auth_backend, citizen_user):
    """TestClient authenticated as a citizen."""
    yield from _create_test_client(
        mock_db_session, mock_report_repo, memory_auth_backend, user=citizen_user
    )


@pytest.fixture
def admin_client(mock_db_session, mock_report_repo, memory_auth_backend, admin_user):
    """TestClient authenticated as an admin."""
    yield from _create_test_client(
        mock_db_session, mock_report_repo, memory_auth_backend, user=admin_user
    )


@pytest.fixture
def unauthenticated_client(mock_db_session, mock_report_repo, memory_auth_backend):
    """TestClient WITHOUT auth override to test 401 responses."""
    yield from _create_test_client(mock_db_session, mock_report_repo, memory_auth_backend)


@pytest.fixture
def clerk_client(mock_db_session, mock_report_repo):
    """TestClient whose auth backend is an external identity provider."""
    from trashmap.services.auth_service import ClerkAuthBackend

    yield from _create_test_client(
        mock_db_session, mock_report_repo, ClerkAuthBackend(allowed_domain="clerk.example.com")
    )


@pytest.fixture
def make_client(mock_db_session, mock_report_repo, memory_auth_backend):
    """Build a client with a custom storage backend."""
    clients = []

    def _make(storage):
        gen = _create_test_client(
            mock_db_session, mock_report_repo, memory_auth_backend, storage=storage
        )
        clients.append(gen)
        return next(gen)

    yield _make

    for gen in clients:
        next(gen, None)
