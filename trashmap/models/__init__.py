"""Database models."""

from trashmap.models.report import Report

__all__ = [
    "Report",
]
