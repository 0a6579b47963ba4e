"""Outbox event schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from rentsync.core.shared_models import OutboxEventType, OutboxStatus


class OutboxEventCreate(BaseModel):
    """Schema for appending an event to the outbox."""

    event_type: OutboxEventType
    payload: Any


class OutboxEvent(OutboxEventCreate):
    """Schema for an outbox event."""

    id: UUID
    status: OutboxStatus = OutboxStatus.PENDING
    error_message: Optional[str] = None
    retry_count: int = 0
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    class Config:
        """Pydantic config."""

        from_attributes = True
