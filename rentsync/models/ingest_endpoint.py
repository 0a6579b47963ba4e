"""Models for ingest endpoints."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, UUID, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentsync.core.shared_models import ResponseStrategy
from rentsync.models._base import Base

if TYPE_CHECKING:
    from rentsync.models.ingest_mapping import IngestMapping
    from rentsync.models.ingest_source import IngestSource


class IngestEndpoint(Base):
    """One concrete request shape under an ingest source.

    Delta detection state (last_etag, last_payload_hash) lives here because
    every endpoint produces its own payload.
    """

    __tablename__ = "ingest_endpoint"

    source_id: Mapped[uuid.UUID] = mapped_column(
        UUID, ForeignKey("ingest_source.id", ondelete="CASCADE"), nullable=False, index=True
    )
    path: Mapped[str] = mapped_column(String, nullable=False)
    method: Mapped[str] = mapped_column(String, nullable=False, default="GET")
    request_body: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    resp_strategy: Mapped[str] = mapped_column(
        String, nullable=False, default=ResponseStrategy.AUTO.value
    )
    items_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_success_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_etag: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_payload_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    source: Mapped["IngestSource"] = relationship(
        "IngestSource", back_populates="endpoints", lazy="noload"
    )
    mappings: Mapped[list["IngestMapping"]] = relationship(
        "IngestMapping",
        back_populates="endpoint",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="IngestMapping.created_at",
    )
