"""Ingest source schemas.

``IngestSource`` is what the admin API returns and deliberately has no token
or credential fields. ``IngestSourceInDB`` carries them and is only used
inside the sync engine.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from rentsync.core.shared_models import IngestAuthType, SyncStatus
from rentsync.platform.ingest.payload import normalize_json_field
from rentsync.schemas.ingest_endpoint import IngestEndpoint


class IngestSourceBase(BaseModel):
    """Base ingest source schema."""

    name: str = Field(..., min_length=1, description="Display name of the source")
    base_url: str = Field(..., description="Base URL every endpoint path is appended to")
    auth_type: IngestAuthType = Field(IngestAuthType.NONE, description="Authentication mode")
    auth_endpoint: Optional[str] = Field(
        None, description="Login URL (absolute, or relative to base_url)"
    )
    verify_endpoint: Optional[str] = Field(
        None, description="Optional second login step receiving the login response"
    )
    refresh_endpoint: Optional[str] = Field(
        None, description="Optional URL exchanging the refresh token for a new access token"
    )
    sync_interval_seconds: int = Field(3600, gt=0, description="Seconds between two syncs")
    is_active: bool = True


class IngestSourceCreate(IngestSourceBase):
    """Schema for creating an ingest source."""

    auth_credentials: Optional[Any] = Field(None, description="JSON payload sent to auth_endpoint")

    @field_validator("auth_credentials", mode="before")
    def unwrap_credentials(cls, v: Any) -> Any:
        """Undo double-encoded credential payloads."""
        return normalize_json_field(v)


class IngestSourceUpdate(BaseModel):
    """Schema for updating an ingest source."""

    name: Optional[str] = None
    base_url: Optional[str] = None
    auth_type: Optional[IngestAuthType] = None
    auth_endpoint: Optional[str] = None
    verify_endpoint: Optional[str] = None
    refresh_endpoint: Optional[str] = None
    auth_credentials: Optional[Any] = Field(None, repr=False)
    sync_interval_seconds: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

    @field_validator("auth_credentials", mode="before")
    def unwrap_credentials(cls, v: Any) -> Any:
        """Undo double-encoded credential payloads."""
        return normalize_json_field(v)


class IngestSourceTokenUpdate(BaseModel):
    """Token state written in a single update after a successful refresh."""

    last_token: str
    refresh_token: Optional[str] = None
    token_expiry: Optional[datetime] = None


class IngestSourceSyncState(BaseModel):
    """Bookkeeping written by the sync orchestrator at the end of a pass."""

    last_status: Optional[SyncStatus] = None
    last_error: Optional[str] = None
    last_sync_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    next_sync_at: Optional[datetime] = None


class IngestSource(IngestSourceBase):
    """Schema for an ingest source as returned by the admin API."""

    id: UUID
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    last_status: SyncStatus = SyncStatus.PENDING
    last_error: Optional[str] = None
    last_sync_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    next_sync_at: Optional[datetime] = None
    endpoints: List[IngestEndpoint] = Field(default_factory=list)

    class Config:
        """Pydantic config."""

        from_attributes = True


class IngestSourceInDB(IngestSource):
    """Ingest source including credentials and token state, for the sync engine only."""

    auth_credentials: Optional[Any] = Field(None, repr=False)
    last_token: Optional[str] = Field(None, repr=False)
    refresh_token: Optional[str] = Field(None, repr=False)
    token_expiry: Optional[datetime] = None
