"""Unit tests for the exception handlers."""

import json
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from rentsync import schemas
from rentsync.api.middleware import (
    authentication_exception_handler,
    not_found_exception_handler,
    rentsync_exception_handler,
    validation_exception_handler,
)
from rentsync.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    MalformedPathError,
    PayloadParseError,
    RentsyncException,
    SourceNotFoundException,
    SyncInProgressError,
    TransportError,
)


@pytest.fixture
def mock_request():
    """Create a mock request."""
    request = MagicMock()
    request.method = "POST"
    request.url.path = "/ingest/sources"
    return request


class TestAuthenticationHandler:
    """Tests for authentication_exception_handler."""

    @pytest.mark.asyncio
    async def test_upstream_response_returned_verbatim(self, mock_request):
        """Test that the upstream status and body are passed through."""
        exc = AuthenticationError(
            "Login failed", upstream_status=403, upstream_body=b'{"error":"locked"}'
        )

        response = await authentication_exception_handler(mock_request, exc)

        assert response.status_code == 403
        assert response.body == b'{"error":"locked"}'

    @pytest.mark.asyncio
    async def test_without_upstream_response(self, mock_request):
        """Test that a local failure becomes a 401."""
        response = await authentication_exception_handler(
            mock_request, AuthenticationError("No access token found in authentication response")
        )

        assert response.status_code == 401
        assert "No access token" in json.loads(response.body)["detail"]


class TestRentsyncHandler:
    """Tests for rentsync_exception_handler."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, status_code",
        [
            (ConfigurationError("bad"), 400),
            (MalformedPathError("$..a", "recursive descent is not supported"), 400),
            (SyncInProgressError("abc"), 409),
            (TransportError("HTTP 500: boom", status_code=500), 502),
            (PayloadParseError(), 502),
            (RentsyncException("unexpected"), 500),
        ],
    )
    async def test_status_codes(self, mock_request, exc, status_code):
        """Test the mapping of exception types to status codes."""
        response = await rentsync_exception_handler(mock_request, exc)
        assert response.status_code == status_code

    @pytest.mark.asyncio
    async def test_not_found(self, mock_request):
        """Test that not-found errors become 404s."""
        response = await not_found_exception_handler(
            mock_request, SourceNotFoundException("Ingest source 1 not found")
        )

        assert response.status_code == 404
        assert json.loads(response.body) == {"detail": "Ingest source 1 not found"}


class TestValidationHandler:
    """Tests for validation_exception_handler."""

    @pytest.mark.asyncio
    async def test_malformed_mapping_path(self, mock_request):
        """Test that a malformed mapping path is reported per field."""
        with pytest.raises(ValidationError) as exc_info:
            schemas.IngestMappingCreate(
                json_path="$..serial", target_model="asset", target_field="asset_tag"
            )

        response = await validation_exception_handler(mock_request, exc_info.value)

        errors = json.loads(response.body)["errors"]
        assert response.status_code == 422
        assert "json_path" in errors[0]
        assert "Malformed path expression" in errors[0]["json_path"]
