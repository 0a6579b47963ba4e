"""Models for physical assets."""

import uuid
from typing import Optional

from sqlalchemy import UUID, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rentsync.core.shared_models import AssetStatus
from rentsync.models._base import Base


class Asset(Base):
    """A single physical piece of equipment, identified by its asset tag."""

    __tablename__ = "asset"

    asset_tag: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=AssetStatus.AVAILABLE.value
    )
    location: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    item_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID, ForeignKey("item_type.id", ondelete="RESTRICT"), nullable=False, index=True
    )
