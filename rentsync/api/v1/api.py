"""API routes for the FastAPI application."""

from rentsync.api.router import TrailingSlashRouter
from rentsync.api.v1.endpoints import health, ingest

# Use our custom router that handles trailing slashes
api_router = TrailingSlashRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(ingest.router, prefix="/ingest", tags=["ingest"])
