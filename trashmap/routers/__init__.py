"""API routers."""

from trashmap.routers import admin, auth, health, reports

__all__ = ["admin", "auth", "health", "reports"]
