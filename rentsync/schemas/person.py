"""Person schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class PersonCreate(BaseModel):
    """Schema for creating or updating a person by external id."""

    external_id: str
    given_name: str
    family_name: str
    email: Optional[str] = None
    company_id: Optional[UUID] = None


class Person(PersonCreate):
    """Schema for a person."""

    id: UUID

    class Config:
        """Pydantic config."""

        from_attributes = True
