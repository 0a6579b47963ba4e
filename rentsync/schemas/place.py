"""Place schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class PlaceCreate(BaseModel):
    """Schema for creating or updating a place by name."""

    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_internal: bool = False


class Place(PlaceCreate):
    """Schema for a place."""

    id: UUID

    class Config:
        """Pydantic config."""

        from_attributes = True
