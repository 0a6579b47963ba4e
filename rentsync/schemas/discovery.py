"""Discovery preview schemas."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class InferredField(BaseModel):
    """A field found in the first sample item, with mapping suggestions."""

    path: str
    label: str
    type: str
    suggested_mapping: Optional[str] = None
    suggested_model: Optional[str] = None
    is_identity: bool = False


class DiscoveryResponse(BaseModel):
    """Schema inference over an upstream response body."""

    upstream_status: int
    raw_response: Any = None
    items_path: Optional[str] = None
    sample_items: List[Any] = Field(default_factory=list)
    inferred_fields: List[InferredField] = Field(default_factory=list)
