"""Models for outbox events."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentsync.core.shared_models import OutboxStatus
from rentsync.models._base import Base


class OutboxEvent(Base):
    """A domain event waiting for an external worker to deliver it."""

    __tablename__ = "outbox_event"

    event_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=OutboxStatus.PENDING.value, index=True
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
