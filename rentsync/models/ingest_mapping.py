"""Models for ingest field mappings."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import UUID, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentsync.models._base import Base

if TYPE_CHECKING:
    from rentsync.models.ingest_endpoint import IngestEndpoint


class IngestMapping(Base):
    """Extracts one value from a raw item into one field of a target entity."""

    __tablename__ = "ingest_mapping"

    endpoint_id: Mapped[uuid.UUID] = mapped_column(
        UUID, ForeignKey("ingest_endpoint.id", ondelete="CASCADE"), nullable=False, index=True
    )
    json_path: Mapped[str] = mapped_column(String, nullable=False)
    target_model: Mapped[str] = mapped_column(String, nullable=False)
    target_field: Mapped[str] = mapped_column(String, nullable=False)
    is_identity: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    endpoint: Mapped["IngestEndpoint"] = relationship(
        "IngestEndpoint", back_populates="mappings", lazy="noload"
    )
