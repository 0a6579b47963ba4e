"""Asset schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from rentsync.core.shared_models import AssetStatus


class AssetBase(BaseModel):
    """Base asset schema."""

    asset_tag: str
    serial_number: Optional[str] = None
    status: str = AssetStatus.AVAILABLE.value
    location: Optional[str] = None
    item_type_id: UUID


class AssetCreate(AssetBase):
    """Schema for creating or updating an asset by tag."""

    pass


class Asset(AssetBase):
    """Schema for an asset."""

    id: UUID
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    class Config:
        """Pydantic config."""

        from_attributes = True
