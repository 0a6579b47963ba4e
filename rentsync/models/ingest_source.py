"""Models for ingest sources."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentsync.core.shared_models import IngestAuthType, SyncStatus
from rentsync.models._base import Base

if TYPE_CHECKING:
    from rentsync.models.ingest_endpoint import IngestEndpoint


class IngestSource(Base):
    """An external HTTP API that is polled for records.

    The token columns (last_token, refresh_token, token_expiry) are written by
    the auth session manager only; the sync bookkeeping columns by the sync
    orchestrator only. The admin API never touches either group.
    """

    __tablename__ = "ingest_source"

    name: Mapped[str] = mapped_column(String, nullable=False)
    base_url: Mapped[str] = mapped_column(String, nullable=False)
    auth_type: Mapped[str] = mapped_column(
        String, nullable=False, default=IngestAuthType.NONE.value
    )
    auth_endpoint: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    verify_endpoint: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    refresh_endpoint: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    auth_credentials: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Token state
    last_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    sync_interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=3600)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Sync bookkeeping
    last_status: Mapped[str] = mapped_column(
        String, nullable=False, default=SyncStatus.PENDING.value
    )
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_success_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    next_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    endpoints: Mapped[list["IngestEndpoint"]] = relationship(
        "IngestEndpoint",
        back_populates="source",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="IngestEndpoint.created_at",
    )
