"""Ingest endpoint schemas."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from rentsync.core.shared_models import ResponseStrategy
from rentsync.platform.ingest.payload import normalize_json_field
from rentsync.schemas.ingest_mapping import IngestMapping

ALLOWED_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"}


def _normalize_method(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    method = v.strip().upper()
    if method not in ALLOWED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {v}")
    return method


class IngestEndpointBase(BaseModel):
    """Base ingest endpoint schema."""

    path: str = Field(..., description="Path relative to the source's base URL")
    method: str = Field("GET", description="HTTP method")
    request_body: Optional[Any] = Field(None, description="Literal JSON body template")
    resp_strategy: ResponseStrategy = Field(
        ResponseStrategy.AUTO, description="How items are located in the response"
    )
    items_path: Optional[str] = Field(None, description="Path expression selecting the item list")
    is_active: bool = True


class IngestEndpointCreate(IngestEndpointBase):
    """Schema for creating an ingest endpoint."""

    @field_validator("method")
    def validate_method(cls, v: str) -> str:
        """Uppercase and check the HTTP method."""
        return _normalize_method(v)

    @field_validator("request_body", mode="before")
    def unwrap_request_body(cls, v: Any) -> Any:
        """Undo double-encoded body templates."""
        return normalize_json_field(v)


class IngestEndpointUpdate(BaseModel):
    """Schema for updating an ingest endpoint."""

    path: Optional[str] = None
    method: Optional[str] = None
    request_body: Optional[Any] = None
    resp_strategy: Optional[ResponseStrategy] = None
    items_path: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("method")
    def validate_method(cls, v: Optional[str]) -> Optional[str]:
        """Uppercase and check the HTTP method."""
        return _normalize_method(v)

    @field_validator("request_body", mode="before")
    def unwrap_request_body(cls, v: Any) -> Any:
        """Undo double-encoded body templates."""
        return normalize_json_field(v)


class IngestEndpointSyncState(BaseModel):
    """Bookkeeping written by the sync orchestrator after each endpoint fetch."""

    last_sync_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_etag: Optional[str] = None
    last_payload_hash: Optional[str] = None
    last_error: Optional[str] = None


class IngestEndpoint(IngestEndpointBase):
    """Schema for an ingest endpoint, including its mappings and sync bookkeeping."""

    id: UUID
    source_id: UUID
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_etag: Optional[str] = None
    last_payload_hash: Optional[str] = None
    last_error: Optional[str] = None
    mappings: List[IngestMapping] = Field(default_factory=list)

    class Config:
        """Pydantic config."""

        from_attributes = True
