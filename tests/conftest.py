"""Shared pytest fixtures."""

# Clear settings cache before any imports to prevent stale values with coverage
from trashmap.config import get_settings

get_settings.cache_clear()

import pytest
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

from trashmap.clients.storage_client import ImageUpload, InMemoryStorageClient
from trashmap.repositories.report_repository import ReportRepository
from trashmap.stores.memory_store import InMemoryReportStore


class StepClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def memory_store(step_clock):
    """In-memory report store with a deterministic clock."""
    return InMemoryReportStore(clock=step_clock)


@pytest.fixture
def memory_storage():
    return InMemoryStorageClient()


@pytest.fixture
def report_repository(memory_store, memory_storage):
    """ReportRepository over in-memory store and storage."""
    return ReportRepository(store=memory_store, storage=memory_storage)


@pytest.fixture
def sample_image():
    return ImageUpload(filename="bottles.jpg", content=b"\xff\xd8\xff" + b"0" * 64, content_type="image/jpeg")


@pytest.fixture
def make_report_data():
    """Factory for valid report creation payloads."""

    def _make(**overrides):
        data = {
            "user_id": "u1",
            "user_name": "Dana",
            "waste_type": "plastic",
            "notes": "Bottles by the river",
            "location": {"lat": 12.97, "lng": 77.59},
            "address": "MG Road",
        }
        data.update(overrides)
        return data

    return _make


# Database mocking fixtures


@pytest.fixture
def mock_async_session():
    """Create a mock AsyncSession for store tests."""
    session = AsyncMock()

    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.scalar_one = Mock(return_value=0)
    mock_result.scalars = Mock(return_value=Mock(all=Mock(return_value=[])))
    mock_result.fetchall = Mock(return_value=[])
    mock_result.rowcount = 0

    session.execute = AsyncMock(return_value=mock_result)
    session.scalar = AsyncMock(return_value=0)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = Mock()
    session.add_all = Mock()
    session.delete = AsyncMock()

    @asynccontextmanager
    async def begin_nested():
        yield

    session.begin_nested = begin_nested

    return session


@pytest.fixture
def sample_uuid():
    """Return a sample UUID string."""
    return str(uuid.uuid4())
