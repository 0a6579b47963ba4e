"""Dependencies shared by the API endpoints."""

import uuid

from fastapi import Request

from rentsync.api.context import ApiContext
from rentsync.core.logging import logger
from rentsync.db.session import get_db  # noqa: F401
from rentsync.platform.ingest.orchestrator import SourceSyncOrchestrator
from rentsync.platform.ingest.repository import IngestRepository, SQLIngestRepository
from rentsync.platform.scheduler import IngestScheduler


async def get_context(request: Request) -> ApiContext:
    """Create the API context for the request.

    Args:
    ----
        request (Request): The FastAPI request object.

    Returns:
    -------
        ApiContext: Request id and a logger carrying it.

    """
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return ApiContext(
        request_id=request_id,
        logger=logger.with_context(request_id=request_id, context_base="api"),
    )


async def get_repository() -> IngestRepository:
    """The storage used by the sync engine."""
    return SQLIngestRepository()


async def get_orchestrator(request: Request) -> SourceSyncOrchestrator:
    """The application's sync orchestrator."""
    return request.app.state.scheduler.orchestrator


async def get_scheduler(request: Request) -> IngestScheduler:
    """The application's ingest scheduler."""
    return request.app.state.scheduler
