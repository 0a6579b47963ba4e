"""Middleware and exception handlers for the FastAPI application."""

import time
import traceback
import uuid
from typing import Union

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from rentsync.core.config import settings
from rentsync.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    NotFoundException,
    PayloadParseError,
    RentsyncException,
    SyncInProgressError,
    TransportError,
    unpack_validation_error,
)
from rentsync.core.logging import logger


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Middleware to generate and add a request ID to the request for tracing.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    request.state.request_id = str(uuid.uuid4())
    return await call_next(request)


async def log_requests(request: Request, call_next: callable) -> Response:
    """Middleware to log incoming requests."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info(
        f"Handled request {request.method} {request.url.path} in {duration:.2f} seconds. "
        f"Response code: {response.status_code}"
    )
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to log unhandled exceptions.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

        response_content = {
            "detail": f"Internal Server Error: {exc.__class__.__name__}: {str(exc)}"
        }
        if settings.DEBUG:
            response_content["trace"] = traceback.format_exc()

        return JSONResponse(status_code=500, content=response_content)


# Exception handlers
async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, ValidationError]
) -> JSONResponse:
    """Exception handler for validation errors that occur during request processing.

    Returns:
    -------
        JSONResponse: A 422 response listing, per field location, what was invalid.

    Example of JSON output:
        {
            "errors": [
                {"body.json_path": "Value error, Malformed path expression ..."}
            ]
        }

    """
    error_messages = unpack_validation_error(exc)
    logger.warning(f"Validation error on {request.method} {request.url.path}: {error_messages}")
    return JSONResponse(status_code=422, content=error_messages)


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Exception handler for NotFoundException.

    Returns:
    -------
        JSONResponse: A 404 Not Found status response that details the error message.

    """
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def authentication_exception_handler(
    request: Request, exc: AuthenticationError
) -> Response:
    """Exception handler for AuthenticationError.

    When the failure came with an upstream response, that response's status
    and body are returned unchanged so the caller sees what the upstream said.
    Otherwise the result is a 401 with the error message.
    """
    if exc.upstream_status is not None:
        return Response(
            content=exc.upstream_body or b"",
            status_code=exc.upstream_status,
            media_type="application/json",
        )
    return JSONResponse(status_code=401, content={"detail": exc.message})


async def rentsync_exception_handler(request: Request, exc: RentsyncException) -> JSONResponse:
    """Generic exception handler for all RentsyncException types.

    Maps exception types to HTTP status codes based on their meaning; unknown
    types become a 500.
    """
    status_code_map = {
        # 400 Bad Request - unusable configuration
        ConfigurationError: 400,
        # 409 Conflict - a pass is already running
        SyncInProgressError: 409,
        # 502 Bad Gateway - the upstream misbehaved
        TransportError: 502,
        PayloadParseError: 502,
    }
    status_code = next(
        (code for exc_type, code in status_code_map.items() if isinstance(exc, exc_type)), 500
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})
