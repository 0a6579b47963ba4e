"""Identity-keyed upserts of mapped records, with a per-pass item type cache."""

from typing import Optional
from uuid import UUID

from rentsync import schemas
from rentsync.core.exceptions import ItemMappingError
from rentsync.core.logging import ContextualLogger, logger
from rentsync.core.shared_models import IngestTargetModel, OutboxEventType
from rentsync.platform.ingest.records import (
    AssetRecord,
    CompanyRecord,
    IngestRecord,
    ItemTypeRecord,
    PersonRecord,
    PlaceRecord,
)
from rentsync.platform.ingest.repository import IngestRepository, UpsertResult


class ItemTypeCache:
    """Code and name to item type id, for the duration of one sync pass.

    Filled once from the active item types and extended as the pass creates
    new ones, so a payload full of assets of the same type costs one lookup.
    """

    def __init__(self, item_types: Optional[list[schemas.ItemType]] = None):
        """Initialize the cache from already loaded item types."""
        self._by_code: dict[str, UUID] = {}
        self._by_name: dict[str, UUID] = {}
        for item_type in item_types or []:
            self.add(item_type.id, item_type.code, item_type.name)

    @classmethod
    async def load(cls, repository: IngestRepository) -> "ItemTypeCache":
        """Build a cache from every active item type."""
        return cls(await repository.list_active_item_types())

    def add(self, item_type_id: UUID, code: Optional[str], name: Optional[str] = None) -> None:
        """Remember an item type."""
        if code:
            self._by_code[code] = item_type_id
        if name:
            self._by_name[name.casefold()] = item_type_id

    def get(self, code: Optional[str] = None, name: Optional[str] = None) -> Optional[UUID]:
        """Look up by code first, then by case-insensitive name."""
        if code and code in self._by_code:
            return self._by_code[code]
        if name:
            return self._by_name.get(name.casefold())
        return None

    def __len__(self) -> int:
        """Number of known codes."""
        return len(self._by_code)


class EntityResolver:
    """Writes records through the repository and appends the matching outbox events.

    One resolver serves one sync pass; its item type cache is loaded on first use.
    """

    def __init__(
        self,
        repository: IngestRepository,
        logger: Optional[ContextualLogger] = None,
        cache: Optional[ItemTypeCache] = None,
    ):
        """Initialize the resolver."""
        self.repository = repository
        self.logger = logger or _module_logger
        self._cache = cache

    async def get_cache(self) -> ItemTypeCache:
        """The pass's item type cache, loading it on first access."""
        if self._cache is None:
            self._cache = await ItemTypeCache.load(self.repository)
            self.logger.debug(f"Loaded {len(self._cache)} active item types into cache")
        return self._cache

    async def ingest(self, records: list[IngestRecord]) -> list[UpsertResult]:
        """Upsert the records of one item, in order.

        Raises:
            ItemMappingError: If a record cannot be resolved. Records before it
                have already been written.
        """
        results = []
        for record in records:
            results.append(await self.resolve(record))
        return results

    async def resolve(self, record: IngestRecord) -> UpsertResult:
        """Upsert a single record by its natural key."""
        if isinstance(record, ItemTypeRecord):
            return await self._upsert_item_type(record)
        if isinstance(record, AssetRecord):
            return await self._upsert_asset(record)
        if isinstance(record, CompanyRecord):
            return await self.repository.upsert_company(record.to_create())
        if isinstance(record, PersonRecord):
            return await self.repository.upsert_person(record.to_create())
        if isinstance(record, PlaceRecord):
            return await self.repository.upsert_place(record.to_create())
        raise ItemMappingError(f"Unsupported record type {type(record).__name__}")

    async def resolve_item_type_id(self, record: AssetRecord) -> UUID:
        """Find the item type an asset belongs to, creating it once if it is unknown.

        Raises:
            ItemMappingError: If the asset references no item type at all.
        """
        if record.item_type_id:
            return record.item_type_id

        code = record.item_type_code
        name = record.item_type_name
        if not code and not name:
            raise ItemMappingError(
                f"Asset {record.asset_tag} has no item type reference",
                target_model=IngestTargetModel.ASSET.value,
            )

        cache = await self.get_cache()
        cached = cache.get(code=code, name=name)
        if cached:
            return cached

        self.logger.info(
            f"Creating item type '{code or name}' referenced by asset {record.asset_tag}"
        )
        # An existing type keeps every field the asset does not reference
        reference = {"code": code or name}
        if name:
            reference["name"] = name
        result = await self._upsert_item_type(ItemTypeRecord(**reference))
        return result.id

    async def _upsert_item_type(self, record: ItemTypeRecord) -> UpsertResult:
        result = await self.repository.upsert_item_type(record.to_create())
        cache = await self.get_cache()
        cache.add(result.id, record.code, record.name)

        if result.created:
            await self._append_event(
                OutboxEventType.ITEM_TYPE_CREATED,
                {
                    "item_type_id": str(result.id),
                    "code": record.code,
                    "name": record.name or record.code,
                },
            )
        return result

    async def _upsert_asset(self, record: AssetRecord) -> UpsertResult:
        item_type_id = await self.resolve_item_type_id(record)
        result = await self.repository.upsert_asset(record.to_create(item_type_id))

        status = result.status or record.status
        payload = {
            "asset_id": str(result.id),
            "asset_tag": record.asset_tag,
            "item_type_id": str(item_type_id),
            "status": status,
        }
        if result.created:
            await self._append_event(OutboxEventType.ASSET_CREATED, payload)
            return result
        if not result.changed:
            return result

        await self._append_event(OutboxEventType.ASSET_UPDATED, payload)
        if result.previous_status and result.previous_status != status:
            await self._append_event(
                OutboxEventType.ASSET_STATUS_CHANGED,
                {**payload, "previous_status": result.previous_status},
            )
        return result

    async def _append_event(self, event_type: OutboxEventType, payload: dict) -> None:
        await self.repository.append_outbox_event(
            schemas.OutboxEventCreate(event_type=event_type, payload=payload)
        )


_module_logger = logger.with_prefix("EntityResolver: ")
