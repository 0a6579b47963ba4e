"""Typed records for the five entity kinds the sync engine writes.

Each record knows its own required fields and natural key. ``build_record``
turns the loosely typed output of the field mapper into one of them.

Only fields that were actually mapped are set on a record, and only set
fields reach the upsert payload, so an update never clears a value the
mapping does not provide.
"""

from typing import Any, Callable, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError

from rentsync import schemas
from rentsync.core.exceptions import ItemMappingError
from rentsync.core.shared_models import AssetStatus, IngestTargetModel, ItemKind
from rentsync.platform.ingest.field_mapper import MappedRecord


def _text(value: Any) -> Optional[str]:
    """Render a scalar JSON value as text; None and empty strings stay None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _mapped_texts(fields: dict[str, Any], names: tuple[str, ...]) -> dict[str, Optional[str]]:
    """Text values of the mapped fields among ``names``; unmapped ones are left out."""
    return {name: _text(fields[name]) for name in names if name in fields}


class ItemTypeRecord(BaseModel):
    """An item type keyed by code. Without a name it is named after its code on creation."""

    kind: Literal["item_type"] = "item_type"
    code: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    item_kind: ItemKind = ItemKind.SERIALIZED
    description: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_mapped(cls, fields: dict[str, Any], identity: Any) -> "ItemTypeRecord":
        """Build from mapped fields; the code falls back to the identity value."""
        data = {"code": _text(fields.get("code")) or _text(identity)}
        data.update(_mapped_texts(fields, ("description",)))
        if _text(fields.get("name")):
            data["name"] = _text(fields["name"])
        if _text(fields.get("kind")):
            data["item_kind"] = _text(fields["kind"]).lower()
        if fields.get("is_active") is not None:
            data["is_active"] = fields["is_active"]
        return cls(**data)

    def to_create(self) -> schemas.ItemTypeCreate:
        """The upsert payload, carrying only the fields set on this record."""
        data = self.model_dump(exclude={"kind"}, exclude_unset=True)
        if "item_kind" in data:
            data["kind"] = data.pop("item_kind")
        return schemas.ItemTypeCreate(**data)


class AssetRecord(BaseModel):
    """An asset keyed by asset tag, referencing its item type one of three ways."""

    kind: Literal["asset"] = "asset"
    asset_tag: str = Field(..., min_length=1)
    serial_number: Optional[str] = None
    status: str = AssetStatus.AVAILABLE.value
    location: Optional[str] = None
    item_type_id: Optional[UUID] = None
    item_type_code: Optional[str] = None
    item_type_name: Optional[str] = None

    @classmethod
    def from_mapped(cls, fields: dict[str, Any], identity: Any) -> "AssetRecord":
        """Build from mapped fields; the tag falls back to the identity value."""
        data = {"asset_tag": _text(fields.get("asset_tag")) or _text(identity)}
        data.update(
            _mapped_texts(
                fields,
                ("serial_number", "location", "item_type_id", "item_type_code", "item_type_name"),
            )
        )
        if _text(fields.get("status")):
            data["status"] = _text(fields["status"]).lower()
        return cls(**data)

    def to_create(self, item_type_id: UUID) -> schemas.AssetCreate:
        """The upsert payload, once the item type is resolved."""
        data = self.model_dump(
            include={"asset_tag", "serial_number", "status", "location"}, exclude_unset=True
        )
        return schemas.AssetCreate(item_type_id=item_type_id, **data)


class CompanyRecord(BaseModel):
    """A company keyed by name."""

    kind: Literal["company"] = "company"
    name: str = Field(..., min_length=1)
    legal_name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_mapped(cls, fields: dict[str, Any], identity: Any) -> "CompanyRecord":
        """Build from mapped fields; the name falls back to the identity value."""
        return cls(
            name=_text(fields.get("name")) or _text(identity),
            **_mapped_texts(fields, ("legal_name", "description")),
        )

    def to_create(self) -> schemas.CompanyCreate:
        """The upsert payload."""
        return schemas.CompanyCreate(**self.model_dump(exclude={"kind"}, exclude_unset=True))


class PersonRecord(BaseModel):
    """A person keyed by external id. Given and family name are both required."""

    kind: Literal["person"] = "person"
    external_id: str = Field(..., min_length=1)
    given_name: str = Field(..., min_length=1)
    family_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    company_id: Optional[UUID] = None

    @classmethod
    def from_mapped(cls, fields: dict[str, Any], identity: Any) -> "PersonRecord":
        """Build from mapped fields; the external id falls back to the identity value."""
        return cls(
            external_id=_text(fields.get("external_id")) or _text(identity),
            given_name=_text(fields.get("given_name")),
            family_name=_text(fields.get("family_name")),
            **_mapped_texts(fields, ("email", "company_id")),
        )

    def to_create(self) -> schemas.PersonCreate:
        """The upsert payload."""
        return schemas.PersonCreate(**self.model_dump(exclude={"kind"}, exclude_unset=True))


class PlaceRecord(BaseModel):
    """A place keyed by name."""

    kind: Literal["place"] = "place"
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    is_internal: bool = False

    @classmethod
    def from_mapped(cls, fields: dict[str, Any], identity: Any) -> "PlaceRecord":
        """Build from mapped fields; the name falls back to the identity value."""
        data = {"name": _text(fields.get("name")) or _text(identity)}
        data.update(_mapped_texts(fields, ("description", "category")))
        if fields.get("is_internal") is not None:
            data["is_internal"] = fields["is_internal"]
        return cls(**data)

    def to_create(self) -> schemas.PlaceCreate:
        """The upsert payload."""
        return schemas.PlaceCreate(**self.model_dump(exclude={"kind"}, exclude_unset=True))


IngestRecord = Union[ItemTypeRecord, AssetRecord, CompanyRecord, PersonRecord, PlaceRecord]

_BUILDERS: dict[IngestTargetModel, Callable[[dict[str, Any], Any], IngestRecord]] = {
    IngestTargetModel.ITEM_TYPE: ItemTypeRecord.from_mapped,
    IngestTargetModel.ASSET: AssetRecord.from_mapped,
    IngestTargetModel.COMPANY: CompanyRecord.from_mapped,
    IngestTargetModel.PERSON: PersonRecord.from_mapped,
    IngestTargetModel.PLACE: PlaceRecord.from_mapped,
}


def build_record(mapped: MappedRecord) -> IngestRecord:
    """Turn mapped fields into the record of their entity kind.

    Raises:
        ItemMappingError: If a required field is missing or a value has the wrong type.
    """
    model = IngestTargetModel(mapped.target_model)
    try:
        return _BUILDERS[model](mapped.fields, mapped.identity)
    except ValidationError as e:
        problems = ", ".join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise ItemMappingError(
            f"Invalid {model.value} record: {problems}", target_model=model.value
        ) from e
