"""Drives one sync pass over one ingest source."""

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Optional
from uuid import UUID

import httpx

from rentsync import schemas
from rentsync.core.config import settings
from rentsync.core.datetime_utils import utc_now_naive
from rentsync.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ItemMappingError,
    PayloadParseError,
    SyncInProgressError,
    TransportError,
)
from rentsync.core.logging import ContextualLogger, logger
from rentsync.core.shared_models import SyncStatus
from rentsync.platform.ingest.auth_session import AuthSessionManager, resolve_url
from rentsync.platform.ingest.delta import NOT_MODIFIED, DeltaDetector
from rentsync.platform.ingest.field_mapper import FieldMapper
from rentsync.platform.ingest.jsonpath import extract_items
from rentsync.platform.ingest.payload import encode_json_body, unwrap_json
from rentsync.platform.ingest.records import build_record
from rentsync.platform.ingest.repository import IngestRepository
from rentsync.platform.ingest.resolver import EntityResolver

BODYLESS_METHODS = {"GET", "DELETE", "HEAD"}
MAX_ERROR_BODY_CHARS = 500


@dataclass
class EndpointSyncResult:
    """Outcome of fetching and ingesting one endpoint.

    ``items_failed`` counts every skipped item. ``items_errored`` is the part
    of those that failed while being stored rather than because of their
    content; such items are worth another attempt on the next pass.
    """

    endpoint_id: UUID
    status: SyncStatus
    changed: bool = False
    items_seen: int = 0
    items_ingested: int = 0
    items_failed: int = 0
    items_errored: int = 0
    error: Optional[str] = None


@dataclass
class SourceSyncResult:
    """Outcome of one pass over a source."""

    source_id: UUID
    status: SyncStatus
    started_at: datetime
    next_sync_at: Optional[datetime] = None
    error: Optional[str] = None
    endpoints: list[EndpointSyncResult] = field(default_factory=list)

    @property
    def items_ingested(self) -> int:
        """Items ingested over all endpoints."""
        return sum(result.items_ingested for result in self.endpoints)


class SourceSyncOrchestrator:
    """Runs sync passes: fetch, detect changes, map and upsert, then record the outcome.

    Failures are recorded on the endpoint and source; ``sync_source`` never
    raises for upstream or configuration problems, so one broken source
    cannot stop a sweep.

    Everything that can change a source's token state (passes, previews and
    explicit logins) holds that source's lock. Passes wait for it; the admin
    operations refuse with ``SyncInProgressError`` instead of queueing.
    """

    def __init__(
        self,
        repository: IngestRepository,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize the orchestrator.

        Args:
            repository: Storage for sources, entities and bookkeeping
            transport: Optional httpx transport, for tests
            timeout_seconds: Outbound request timeout, defaults to the configured one
        """
        self.repository = repository
        self.transport = transport
        self.timeout = httpx.Timeout(
            timeout_seconds
            if timeout_seconds is not None
            else settings.INGEST_HTTP_TIMEOUT_SECONDS
        )
        self.detector = DeltaDetector()
        self._source_locks: dict[UUID, asyncio.Lock] = {}

    def source_lock(self, source_id: UUID) -> asyncio.Lock:
        """The lock guarding the token state of one source."""
        return self._source_locks.setdefault(source_id, asyncio.Lock())

    @asynccontextmanager
    async def exclusive(self, source_id: UUID) -> AsyncIterator[None]:
        """Hold the source's lock, failing at once if a pass or another operation has it.

        Raises:
            SyncInProgressError: If the lock is taken.
        """
        lock = self.source_lock(source_id)
        if lock.locked():
            raise SyncInProgressError(str(source_id))
        async with lock:
            yield

    def client(self) -> httpx.AsyncClient:
        """A new HTTP client with the bounded timeout."""
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def session(
        self,
        source: schemas.IngestSourceInDB,
        client: httpx.AsyncClient,
        source_logger: Optional[ContextualLogger] = None,
    ) -> AuthSessionManager:
        """The auth session for one source."""
        return AuthSessionManager(source, self.repository, client, source_logger)

    @staticmethod
    def build_request(
        client: httpx.AsyncClient,
        source: schemas.IngestSourceInDB,
        endpoint: schemas.IngestEndpoint,
        conditional: bool = True,
    ) -> httpx.Request:
        """Build the outbound request for an endpoint.

        GET, DELETE and HEAD never carry a body. For the other methods a
        missing, empty or ``null`` template means no body and no Content-Type.
        """
        method = endpoint.method.upper()
        headers = {"Accept": "application/json"}
        if conditional:
            headers.update(DeltaDetector.conditional_headers(endpoint.last_etag))

        body = None
        if method not in BODYLESS_METHODS:
            body = encode_json_body(endpoint.request_body)
        if body is not None:
            headers["Content-Type"] = "application/json"

        return client.build_request(
            method,
            resolve_url(source.base_url, endpoint.path),
            headers=headers,
            content=body,
        )

    async def preview(
        self, source: schemas.IngestSourceInDB, endpoint: schemas.IngestEndpoint
    ) -> httpx.Response:
        """Perform one authenticated request for an endpoint and return the response as is.

        Raises:
            AuthenticationError: If a rejected request could not be re-authenticated.
            SyncInProgressError: If a pass over the source is running.
            TransportError: If the upstream could not be reached.
        """
        source_logger = _source_logger(source).with_context(endpoint_id=str(endpoint.id))
        async with self.exclusive(source.id), self.client() as client:
            session = self.session(source, client, source_logger)
            try:
                return await session.send(
                    lambda: self.build_request(client, source, endpoint, conditional=False)
                )
            except httpx.HTTPError as e:
                raise TransportError(f"Request to upstream failed: {e}") from e

    async def authenticate(
        self, source: schemas.IngestSourceInDB, source_logger: Optional[ContextualLogger] = None
    ) -> None:
        """Obtain and store a fresh token for a source.

        Raises:
            AuthenticationError: If no token could be obtained.
            SyncInProgressError: If a pass over the source is running.
        """
        async with self.exclusive(source.id), self.client() as client:
            await self.session(source, client, source_logger).refresh()

    async def sync_source(self, source: schemas.IngestSourceInDB) -> SourceSyncResult:
        """Run one pass over every active endpoint of a source.

        Endpoint bookkeeping is written once per endpoint and source
        bookkeeping once at the end, including the next scheduled run. The
        pass waits for any admin operation holding the source's lock.
        """
        async with self.source_lock(source.id):
            return await self._sync_source(source)

    async def _sync_source(self, source: schemas.IngestSourceInDB) -> SourceSyncResult:
        source_logger = _source_logger(source)
        started_at = utc_now_naive()
        result = SourceSyncResult(
            source_id=source.id, status=SyncStatus.SUCCESS, started_at=started_at
        )
        source_logger.info("Starting sync pass")

        try:
            async with self.client() as client:
                session = self.session(source, client, source_logger)
                resolver = EntityResolver(self.repository, source_logger)
                for endpoint in source.endpoints:
                    if not endpoint.is_active:
                        continue
                    result.endpoints.append(
                        await self._sync_endpoint(client, session, resolver, source, endpoint)
                    )
        except Exception as e:
            source_logger.error(f"Sync pass aborted: {e}", exc_info=True)
            result.status = SyncStatus.ERROR
            result.error = f"Sync pass aborted: {e}"

        failed = [ep for ep in result.endpoints if ep.status == SyncStatus.ERROR]
        if failed and result.error is None:
            result.status = SyncStatus.ERROR
            result.error = "; ".join(ep.error for ep in failed if ep.error)

        await self._record_source_outcome(source, result)
        source_logger.info(
            f"Finished sync pass with status {result.status.value}: "
            f"{result.items_ingested} items ingested from {len(result.endpoints)} endpoints"
        )
        return result

    async def _record_source_outcome(
        self, source: schemas.IngestSourceInDB, result: SourceSyncResult
    ) -> None:
        interval = source.sync_interval_seconds or settings.INGEST_DEFAULT_SYNC_INTERVAL_SECONDS
        result.next_sync_at = result.started_at + timedelta(seconds=interval)

        state = schemas.IngestSourceSyncState(
            last_status=result.status,
            last_error=result.error,
            last_sync_at=result.started_at,
            next_sync_at=result.next_sync_at,
        )
        if result.status == SyncStatus.SUCCESS:
            state.last_success_at = result.started_at

        await self.repository.update_source_sync_state(source.id, state)

    async def _sync_endpoint(
        self,
        client: httpx.AsyncClient,
        session: AuthSessionManager,
        resolver: EntityResolver,
        source: schemas.IngestSourceInDB,
        endpoint: schemas.IngestEndpoint,
    ) -> EndpointSyncResult:
        endpoint_logger = session.logger.with_context(endpoint_id=str(endpoint.id))
        now = utc_now_naive()
        result = EndpointSyncResult(endpoint_id=endpoint.id, status=SyncStatus.ERROR)
        state = schemas.IngestEndpointSyncState(last_sync_at=now)

        try:
            response = await session.send(lambda: self.build_request(client, source, endpoint))
            if response.status_code != NOT_MODIFIED and not response.is_success:
                raise TransportError(
                    f"HTTP {response.status_code}: {response.text[:MAX_ERROR_BODY_CHARS]}",
                    status_code=response.status_code,
                )

            delta = self.detector.evaluate(
                response.status_code,
                response.content,
                response.headers.get("ETag"),
                endpoint.last_payload_hash,
                endpoint.last_etag,
            )
            if delta.changed:
                data = _parse_body(response.content)
                await self._ingest_items(resolver, endpoint, data, result, endpoint_logger)
            else:
                endpoint_logger.info(
                    f"{endpoint.method} {endpoint.path} unchanged ({delta.reason})"
                )

            result.status = SyncStatus.SUCCESS
            result.changed = delta.changed
            state.last_success_at = now
            state.last_error = None
            if result.items_errored:
                endpoint_logger.warning(
                    f"{result.items_errored} items could not be stored, "
                    "keeping the previous payload hash so the next pass retries them"
                )
            else:
                state.last_etag = delta.etag
                state.last_payload_hash = delta.content_hash
        except AuthenticationError as e:
            result.error = _describe(endpoint, f"Authentication failed: {e.message}")
        except httpx.HTTPError as e:
            result.error = _describe(endpoint, f"Request failed: {e}")
        except (TransportError, PayloadParseError, ConfigurationError) as e:
            result.error = _describe(endpoint, e.message)

        if result.error:
            endpoint_logger.warning(f"Endpoint sync failed: {result.error}")
            state.last_error = result.error

        await self.repository.update_endpoint_sync_state(endpoint.id, state)
        return result

    async def _ingest_items(
        self,
        resolver: EntityResolver,
        endpoint: schemas.IngestEndpoint,
        data: Any,
        result: EndpointSyncResult,
        endpoint_logger: ContextualLogger,
    ) -> None:
        items = extract_items(data, endpoint.resp_strategy, endpoint.items_path)
        mapper = FieldMapper(endpoint_logger)
        result.items_seen = len(items)

        for index, item in enumerate(items):
            try:
                mapped_records = mapper.map_item(item, endpoint.mappings)
                records = [build_record(mapped) for mapped in mapped_records]
                await resolver.ingest(records)
                result.items_ingested += 1
            except (ItemMappingError, ConfigurationError) as e:
                result.items_failed += 1
                endpoint_logger.warning(f"Skipping item {index}: {e.message}")
            except Exception as e:
                result.items_failed += 1
                result.items_errored += 1
                endpoint_logger.error(f"Failed to store item {index}: {e}", exc_info=True)

        endpoint_logger.info(
            f"{endpoint.method} {endpoint.path}: ingested {result.items_ingested} of "
            f"{result.items_seen} items ({result.items_failed} skipped)"
        )


def _parse_body(body: bytes) -> Any:
    try:
        return json.loads(unwrap_json(body))
    except ValueError as e:
        raise PayloadParseError(f"Upstream payload is not valid JSON: {e}") from e


def _describe(endpoint: schemas.IngestEndpoint, message: str) -> str:
    return f"{endpoint.method} {endpoint.path}: {message}"


def _source_logger(source: schemas.IngestSourceInDB) -> ContextualLogger:
    return logger.with_context(source_id=str(source.id), source_name=source.name)
