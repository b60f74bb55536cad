"""Repository layer for data access."""

from trashmap.repositories.report_repository import ReportRepository

__all__ = [
    "ReportRepository",
]
