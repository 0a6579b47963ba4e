"""Ingest mapping schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from rentsync.core.exceptions import MalformedPathError
from rentsync.core.shared_models import IngestTargetModel
from rentsync.platform.ingest.jsonpath import compile_path


class IngestMappingBase(BaseModel):
    """Base ingest mapping schema."""

    json_path: str = Field(..., description="Path expression selecting the value, e.g. '$.sku'")
    target_model: IngestTargetModel = Field(..., description="Entity kind the value is written to")
    target_field: str = Field(..., min_length=1, description="Field of the target entity")
    is_identity: bool = Field(False, description="Whether the value is the entity's natural key")


class IngestMappingCreate(IngestMappingBase):
    """Schema for creating an ingest mapping."""

    @field_validator("json_path")
    def validate_json_path(cls, v: str) -> str:
        """Reject path expressions that cannot be parsed."""
        try:
            compile_path(v)
        except MalformedPathError as e:
            raise ValueError(e.message) from e
        return v


class IngestMapping(IngestMappingBase):
    """Schema for an ingest mapping."""

    id: UUID
    endpoint_id: UUID
    created_at: Optional[datetime] = None

    class Config:
        """Pydantic config."""

        from_attributes = True
