"""Company schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CompanyCreate(BaseModel):
    """Schema for creating or updating a company by name."""

    name: str
    legal_name: Optional[str] = None
    description: Optional[str] = None


class Company(CompanyCreate):
    """Schema for a company."""

    id: UUID

    class Config:
        """Pydantic config."""

        from_attributes = True
