"""Common test fixtures."""

import uuid
from datetime import datetime
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import schemas
from rentsync.api.context import ApiContext
from rentsync.core.logging import logger
from rentsync.core.shared_models import IngestAuthType, IngestTargetModel
from rentsync.platform.ingest.repository import IngestRepository, UpsertResult


class InMemoryIngestRepository(IngestRepository):
    """IngestRepository keeping everything in dicts and recording every write."""

    def __init__(self):
        self.sources: dict[uuid.UUID, schemas.IngestSourceInDB] = {}
        self.item_types: dict[str, schemas.ItemType] = {}
        self.assets: dict[str, schemas.Asset] = {}
        self.companies: dict[str, uuid.UUID] = {}
        self.people: dict[str, uuid.UUID] = {}
        self.places: dict[str, uuid.UUID] = {}

        self.item_type_upserts: list[schemas.ItemTypeCreate] = []
        self.asset_upserts: list[schemas.AssetCreate] = []
        self.company_upserts: list[schemas.CompanyCreate] = []
        self.person_upserts: list[schemas.PersonCreate] = []
        self.place_upserts: list[schemas.PlaceCreate] = []
        self.token_updates: list[tuple[uuid.UUID, schemas.IngestSourceTokenUpdate]] = []
        self.source_states: list[tuple[uuid.UUID, schemas.IngestSourceSyncState]] = []
        self.endpoint_states: list[tuple[uuid.UUID, schemas.IngestEndpointSyncState]] = []
        self.outbox: list[schemas.OutboxEventCreate] = []

    def add_source(self, source: schemas.IngestSourceInDB) -> schemas.IngestSourceInDB:
        self.sources[source.id] = source
        return source

    def add_item_type(self, code: str, name: Optional[str] = None) -> schemas.ItemType:
        item_type = schemas.ItemType(id=uuid.uuid4(), code=code, name=name or code)
        self.item_types[code] = item_type
        return item_type

    async def get_source(self, source_id):
        source = self.sources.get(source_id)
        return source.model_copy(deep=True) if source else None

    async def get_endpoint(self, endpoint_id):
        for source in self.sources.values():
            for endpoint in source.endpoints:
                if endpoint.id == endpoint_id:
                    return endpoint.model_copy(deep=True)
        return None

    async def list_due_sources(self, now: datetime):
        return [
            source.model_copy(deep=True)
            for source in self.sources.values()
            if source.is_active and (source.next_sync_at is None or source.next_sync_at <= now)
        ]

    async def list_active_item_types(self):
        return [item_type for item_type in self.item_types.values() if item_type.is_active]

    async def upsert_item_type(self, item_type):
        self.item_type_upserts.append(item_type)
        existing = self.item_types.get(item_type.code)
        if existing is None:
            values = item_type.model_dump()
            values["name"] = values["name"] or values["code"]
            stored = schemas.ItemType(id=uuid.uuid4(), **values)
        else:
            stored = existing.model_copy(update=item_type.model_dump(exclude_unset=True))
        self.item_types[item_type.code] = stored
        return UpsertResult(id=stored.id, created=existing is None, changed=stored != existing)

    async def upsert_asset(self, asset):
        self.asset_upserts.append(asset)
        existing = self.assets.get(asset.asset_tag)
        if existing is None:
            stored = schemas.Asset(id=uuid.uuid4(), **asset.model_dump())
        else:
            stored = existing.model_copy(update=asset.model_dump(exclude_unset=True))
        self.assets[asset.asset_tag] = stored
        return UpsertResult(
            id=stored.id,
            created=existing is None,
            changed=stored != existing,
            previous_status=existing.status if existing else None,
            status=stored.status,
        )

    def _upsert_key(self, store: dict[str, uuid.UUID], key: str) -> UpsertResult:
        created = key not in store
        store.setdefault(key, uuid.uuid4())
        return UpsertResult(id=store[key], created=created)

    async def upsert_company(self, company):
        self.company_upserts.append(company)
        return self._upsert_key(self.companies, company.name)

    async def upsert_person(self, person):
        self.person_upserts.append(person)
        return self._upsert_key(self.people, person.external_id)

    async def upsert_place(self, place):
        self.place_upserts.append(place)
        return self._upsert_key(self.places, place.name)

    async def update_source_tokens(self, source_id, tokens):
        self.token_updates.append((source_id, tokens))
        self._update_source(source_id, tokens.model_dump(exclude_unset=True))

    async def update_source_sync_state(self, source_id, state):
        self.source_states.append((source_id, state))
        self._update_source(source_id, state.model_dump(exclude_unset=True))

    async def update_endpoint_sync_state(self, endpoint_id, state):
        self.endpoint_states.append((endpoint_id, state))
        values = state.model_dump(exclude_unset=True)
        for source_id, source in self.sources.items():
            endpoints = [
                endpoint.model_copy(update=values) if endpoint.id == endpoint_id else endpoint
                for endpoint in source.endpoints
            ]
            self.sources[source_id] = source.model_copy(update={"endpoints": endpoints})

    async def append_outbox_event(self, event):
        self.outbox.append(event)

    def _update_source(self, source_id: uuid.UUID, values: dict[str, Any]) -> None:
        if source_id in self.sources:
            self.sources[source_id] = self.sources[source_id].model_copy(update=values)


def make_source(**overrides: Any) -> schemas.IngestSourceInDB:
    """Build a source without endpoints; add them with make_endpoint."""
    data = {
        "id": uuid.uuid4(),
        "name": "Fleet API",
        "base_url": "https://fleet.example.com/api",
        "auth_type": IngestAuthType.NONE,
        "sync_interval_seconds": 600,
    }
    data.update(overrides)
    return schemas.IngestSourceInDB(**data)


def make_bearer_source(**overrides: Any) -> schemas.IngestSourceInDB:
    """Build a bearer source with a stored (possibly stale) token."""
    data = {
        "auth_type": IngestAuthType.BEARER,
        "auth_endpoint": "/auth/login",
        "auth_credentials": {"username": "sync", "password": "secret"},
        "last_token": "old-token",
    }
    data.update(overrides)
    return make_source(**data)


def make_endpoint(
    source: schemas.IngestSourceInDB, *mappings: schemas.IngestMapping, **overrides: Any
) -> schemas.IngestEndpoint:
    """Build an endpoint, attach it to ``source`` and return it."""
    endpoint_id = overrides.pop("id", uuid.uuid4())
    data = {
        "id": endpoint_id,
        "source_id": source.id,
        "path": "/devices",
        "method": "GET",
        "mappings": [
            mapping.model_copy(update={"endpoint_id": endpoint_id}) for mapping in mappings
        ],
    }
    data.update(overrides)
    endpoint = schemas.IngestEndpoint(**data)
    source.endpoints.append(endpoint)
    return endpoint


def make_mapping(
    json_path: str,
    target_model: IngestTargetModel,
    target_field: str,
    is_identity: bool = False,
) -> schemas.IngestMapping:
    """Build a mapping."""
    return schemas.IngestMapping(
        id=uuid.uuid4(),
        endpoint_id=uuid.uuid4(),
        json_path=json_path,
        target_model=target_model,
        target_field=target_field,
        is_identity=is_identity,
    )


class RecordingHandler:
    """httpx.MockTransport handler answering from a queue of responses, per path.

    Every request is recorded. A path answers with its queued responses in
    order and repeats the last one when the queue runs out.
    """

    def __init__(self, routes: dict[str, list[httpx.Response]]):
        self.routes = routes
        self.requests: list[httpx.Request] = []
        self._served: dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get(request.url.path)
        if not responses:
            return httpx.Response(404, json={"detail": "no route"})
        index = self._served.get(request.url.path, 0)
        self._served[request.url.path] = index + 1
        queued = responses[min(index, len(responses) - 1)]
        # A fresh copy per request, since the client closes what it receives
        return httpx.Response(queued.status_code, headers=queued.headers, content=queued.content)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def repository():
    """Provide an empty in-memory ingest repository."""
    return InMemoryIngestRepository()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.commit = AsyncMock()
    return db


@pytest.fixture
def api_context():
    """Create an API context with a real logger."""
    return ApiContext(request_id=str(uuid.uuid4()), logger=logger.with_context(context_base="test"))


@pytest.fixture
def mock_scheduler():
    """Create a mock ingest scheduler."""
    scheduler = MagicMock()
    scheduler.trigger_now = AsyncMock(return_value=True)
    scheduler.running = True
    return scheduler
