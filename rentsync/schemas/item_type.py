"""Item type schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from rentsync.core.shared_models import ItemKind


class ItemTypeBase(BaseModel):
    """Base item type schema."""

    code: str
    name: str
    kind: ItemKind = ItemKind.SERIALIZED
    description: Optional[str] = None
    is_active: bool = True


class ItemTypeCreate(ItemTypeBase):
    """Schema for creating or updating an item type by code.

    Without a name, a created item type is named after its code and an
    existing one keeps its name.
    """

    name: Optional[str] = None


class ItemType(ItemTypeBase):
    """Schema for an item type."""

    id: UUID
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    class Config:
        """Pydantic config."""

        from_attributes = True
