"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from trashmap import __version__
from trashmap.config import get_settings
from trashmap.database import engine, init_db

# Import routers
from trashmap.routers import admin, auth, health, reports

# Import middleware
from trashmap.middleware import logging_middleware, register_exception_handlers
from trashmap.utils.logger import configure_logging, get_logger

settings = get_settings()

# Configure logging early
configure_logging(log_level=settings.log_level, debug=settings.debug)
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    log.info(
        "starting application",
        debug=settings.debug,
        log_level=settings.log_level,
        report_store=settings.report_store_backend,
        storage=settings.storage_backend,
        auth=settings.auth_backend,
    )
    if settings.report_store_backend == "postgres":
        await init_db()
        log.info("database initialized")

    yield

    log.info("shutting down application")
    await engine.dispose()
    log.info("database connections closed")


app = FastAPI(
    title="TrashMap API",
    description="TrashMap - citizen waste reporting and triage",
    version=__version__,
    lifespan=lifespan,
)

# Register exception handlers first
register_exception_handlers(app)

# CORS middleware (must be first in middleware stack)
_cors_origins = settings.get_cors_origins_list()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins or ["*"],
    allow_credentials=bool(_cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware
app.middleware("http")(logging_middleware)

# Register routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(reports.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(auth.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "TrashMap API",
        "version": __version__,
        "features": [
            "Photo-backed waste reports with location",
            "Cursor pagination over the newest reports",
            "Admin triage: assign, resolve, reopen, prioritize",
            "CSV export of filtered reports",
        ],
        "endpoints": {
            "health": "/api/v1/health",
            "reports": "/api/v1/reports",
            "admin": "/api/v1/admin/reports",
            "auth": "/api/v1/auth",
        },
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trashmap.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
