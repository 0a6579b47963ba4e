"""Applies an endpoint's mappings to one decoded item."""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from rentsync import schemas
from rentsync.core.exceptions import ItemMappingError
from rentsync.core.logging import ContextualLogger, logger
from rentsync.core.shared_models import IngestTargetModel
from rentsync.platform.ingest.jsonpath import PathNotFound, lookup

# Item types go first so assets of the same item can reference them
KIND_ORDER = (
    IngestTargetModel.ITEM_TYPE,
    IngestTargetModel.COMPANY,
    IngestTargetModel.PLACE,
    IngestTargetModel.PERSON,
    IngestTargetModel.ASSET,
)


@dataclass
class MappedRecord:
    """The fields extracted for one entity kind, plus its identity value."""

    target_model: IngestTargetModel
    fields: dict[str, Any] = field(default_factory=dict)
    identity: Any = None


def _is_resolved(value: Any) -> bool:
    return value is not None and value != "" and value != []


class FieldMapper:
    """Evaluates mappings against decoded items."""

    def __init__(self, logger: Optional[ContextualLogger] = None):
        """Initialize the mapper."""
        self.logger = logger or _module_logger

    def map_item(self, item: Any, mappings: Sequence[schemas.IngestMapping]) -> list[MappedRecord]:
        """Extract the mapped fields of one item, grouped per entity kind.

        A mapping whose path does not match is skipped. Every entity kind that
        has mappings needs an identity value: the first identity mapping that
        resolves provides it. If any kind ends up without one, the whole item
        is rejected.

        Args:
            item: One decoded item
            mappings: The mappings of the endpoint the item came from

        Returns:
            One MappedRecord per entity kind, item types first.

        Raises:
            ItemMappingError: If a kind has no resolved identity.
            MalformedPathError: If a mapping's path cannot be parsed.
        """
        records: dict[IngestTargetModel, MappedRecord] = {}

        for mapping in mappings:
            model = IngestTargetModel(mapping.target_model)
            record = records.setdefault(model, MappedRecord(target_model=model))

            try:
                value = lookup(item, mapping.json_path)
            except PathNotFound:
                if mapping.is_identity:
                    self.logger.debug(
                        f"Identity path {mapping.json_path} for {model.value} not found in item"
                    )
                continue

            record.fields[mapping.target_field] = value
            if mapping.is_identity and record.identity is None and _is_resolved(value):
                record.identity = value

        for model, record in records.items():
            if record.identity is None:
                raise ItemMappingError(
                    f"No identity value resolved for {model.value}", target_model=model.value
                )

        return [records[model] for model in KIND_ORDER if model in records]


_module_logger = logger.with_prefix("FieldMapper: ")
