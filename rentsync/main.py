"""Main module of the FastAPI application.

Sets up the app, its middleware and exception handlers, and runs the ingest
scheduler for the lifetime of the process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from rentsync.api.middleware import (
    add_request_id,
    authentication_exception_handler,
    exception_logging_middleware,
    log_requests,
    not_found_exception_handler,
    rentsync_exception_handler,
    validation_exception_handler,
)
from rentsync.api.router import TrailingSlashRouter
from rentsync.api.v1.api import api_router
from rentsync.core.config import settings
from rentsync.core.exceptions import AuthenticationError, NotFoundException, RentsyncException
from rentsync.core.logging import logger
from rentsync.db.init_db import init_db
from rentsync.db.session import async_engine
from rentsync.platform.scheduler import IngestScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events.

    Creates the tables if configured and runs the ingest scheduler.
    """
    if settings.RUN_DB_CREATE_ALL:
        logger.info("Creating database tables...")
        await init_db(async_engine)

    app.state.scheduler = IngestScheduler()
    if settings.INGEST_SCHEDULER_ENABLED:
        await app.state.scheduler.start()

    yield

    if app.state.scheduler.running:
        await app.state.scheduler.stop()


# Create FastAPI app with our custom router and disable FastAPI's built-in redirects
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
    router=TrailingSlashRouter(),
    redirect_slashes=False,
)

app.include_router(api_router)

# Register middleware directly
app.middleware("http")(add_request_id)
app.middleware("http")(log_requests)
app.middleware("http")(exception_logging_middleware)

# Register exception handlers
app.exception_handler(RequestValidationError)(validation_exception_handler)
app.exception_handler(ValidationError)(validation_exception_handler)
app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(AuthenticationError)(authentication_exception_handler)
app.exception_handler(RentsyncException)(rentsync_exception_handler)
