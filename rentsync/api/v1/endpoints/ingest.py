"""The API module that contains the endpoints for ingest configuration and syncing.

Sources, endpoints and mappings are edited here. Token and sync bookkeeping
fields are never written through these routes, and tokens are never returned.
"""

from typing import List
from uuid import UUID

from fastapi import Depends, Path, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from rentsync import crud, schemas
from rentsync.api import deps
from rentsync.api.context import ApiContext
from rentsync.api.router import TrailingSlashRouter
from rentsync.core.exceptions import (
    EndpointNotFoundException,
    PayloadParseError,
    SourceNotFoundException,
)
from rentsync.core.shared_models import IngestAuthType
from rentsync.platform.ingest.discovery import discover_schema
from rentsync.platform.ingest.orchestrator import SourceSyncOrchestrator
from rentsync.platform.ingest.repository import IngestRepository
from rentsync.platform.scheduler import IngestScheduler

router = TrailingSlashRouter()


async def _get_source_or_404(db: AsyncSession, source_id: UUID):
    source = await crud.ingest_source.get(db, source_id)
    if not source:
        raise SourceNotFoundException(f"Ingest source {source_id} not found")
    return source


async def _get_endpoint_or_404(db: AsyncSession, endpoint_id: UUID):
    endpoint = await crud.ingest_endpoint.get(db, endpoint_id)
    if not endpoint:
        raise EndpointNotFoundException(f"Ingest endpoint {endpoint_id} not found")
    return endpoint


@router.get("/sources", response_model=List[schemas.IngestSource])
async def list_sources(
    *,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
) -> List[schemas.IngestSource]:
    """List all ingest sources with their endpoints and mappings."""
    sources = await crud.ingest_source.get_all(db)
    ctx.logger.info(f"Retrieved {len(sources)} ingest sources")
    return [schemas.IngestSource.model_validate(source) for source in sources]


@router.post("/sources", response_model=schemas.IngestSource)
async def create_source(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_in: schemas.IngestSourceCreate,
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestSource:
    """Create an ingest source.

    The source is due for its first sync immediately.
    """
    source = await crud.ingest_source.create(db, obj_in=source_in)
    ctx.logger.info(f"Created ingest source {source.id} ({source.name})")
    return schemas.IngestSource.model_validate(await crud.ingest_source.get(db, source.id))


@router.get("/sources/{source_id}", response_model=schemas.IngestSource)
async def read_source(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_id: UUID = Path(..., description="The ID of the ingest source"),
) -> schemas.IngestSource:
    """Get an ingest source."""
    return schemas.IngestSource.model_validate(await _get_source_or_404(db, source_id))


@router.patch("/sources/{source_id}", response_model=schemas.IngestSource)
async def update_source(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_id: UUID = Path(..., description="The ID of the ingest source"),
    source_in: schemas.IngestSourceUpdate,
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestSource:
    """Update an ingest source's configuration."""
    source = await _get_source_or_404(db, source_id)
    source = await crud.ingest_source.update(db, db_obj=source, obj_in=source_in)
    ctx.logger.info(f"Updated ingest source {source_id}")
    return schemas.IngestSource.model_validate(source)


@router.delete("/sources/{source_id}", response_model=schemas.IngestSource)
async def delete_source(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_id: UUID = Path(..., description="The ID of the ingest source"),
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestSource:
    """Delete an ingest source together with its endpoints and mappings."""
    source = schemas.IngestSource.model_validate(await _get_source_or_404(db, source_id))
    await crud.ingest_source.remove(db, id=source_id)
    ctx.logger.info(f"Deleted ingest source {source_id}")
    return source


@router.post("/sources/{source_id}/test-auth")
async def test_auth(
    *,
    source_id: UUID = Path(..., description="The ID of the ingest source"),
    repository: IngestRepository = Depends(deps.get_repository),
    orchestrator: SourceSyncOrchestrator = Depends(deps.get_orchestrator),
    ctx: ApiContext = Depends(deps.get_context),
) -> dict[str, str]:
    """Log in to the source's upstream and store the obtained token.

    The token itself is never part of the response. A failed login answers
    with the upstream's own status and body, and a source with a sync pass
    in progress answers 409.
    """
    source = await repository.get_source(source_id)
    if not source:
        raise SourceNotFoundException(f"Ingest source {source_id} not found")

    if IngestAuthType(source.auth_type) != IngestAuthType.BEARER:
        return {"status": "no auth needed"}

    source_logger = ctx.logger.with_context(source_id=str(source.id), source_name=source.name)
    await orchestrator.authenticate(source, source_logger)
    return {"status": "success"}


@router.post("/sources/{source_id}/sync", status_code=202)
async def sync_source(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_id: UUID = Path(..., description="The ID of the ingest source"),
    scheduler: IngestScheduler = Depends(deps.get_scheduler),
    ctx: ApiContext = Depends(deps.get_context),
) -> dict[str, str]:
    """Start a sync pass for the source right away, without waiting for it.

    A request that arrives while a pass for the source is running is folded
    into that pass.
    """
    await _get_source_or_404(db, source_id)
    if await scheduler.trigger_now(source_id):
        ctx.logger.info(f"Triggered sync for ingest source {source_id}")
        return {"status": "sync triggered"}
    return {"status": "sync already in progress"}


@router.post("/sources/{source_id}/endpoints", response_model=schemas.IngestEndpoint)
async def create_endpoint(
    *,
    db: AsyncSession = Depends(deps.get_db),
    source_id: UUID = Path(..., description="The ID of the ingest source"),
    endpoint_in: schemas.IngestEndpointCreate,
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestEndpoint:
    """Add an endpoint to a source."""
    await _get_source_or_404(db, source_id)
    endpoint = await crud.ingest_endpoint.create_for_source(
        db, source_id=source_id, obj_in=endpoint_in
    )
    ctx.logger.info(f"Created ingest endpoint {endpoint.id} for source {source_id}")
    return schemas.IngestEndpoint.model_validate(endpoint)


@router.patch("/endpoints/{endpoint_id}", response_model=schemas.IngestEndpoint)
async def update_endpoint(
    *,
    db: AsyncSession = Depends(deps.get_db),
    endpoint_id: UUID = Path(..., description="The ID of the ingest endpoint"),
    endpoint_in: schemas.IngestEndpointUpdate,
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestEndpoint:
    """Update an endpoint's request configuration."""
    endpoint = await _get_endpoint_or_404(db, endpoint_id)
    endpoint = await crud.ingest_endpoint.update(db, db_obj=endpoint, obj_in=endpoint_in)
    ctx.logger.info(f"Updated ingest endpoint {endpoint_id}")
    return schemas.IngestEndpoint.model_validate(endpoint)


@router.delete("/endpoints/{endpoint_id}", response_model=schemas.IngestEndpoint)
async def delete_endpoint(
    *,
    db: AsyncSession = Depends(deps.get_db),
    endpoint_id: UUID = Path(..., description="The ID of the ingest endpoint"),
    ctx: ApiContext = Depends(deps.get_context),
) -> schemas.IngestEndpoint:
    """Delete an endpoint and its mappings."""
    endpoint = schemas.IngestEndpoint.model_validate(await _get_endpoint_or_404(db, endpoint_id))
    await crud.ingest_endpoint.remove(db, id=endpoint_id)
    ctx.logger.info(f"Deleted ingest endpoint {endpoint_id}")
    return endpoint


@router.put("/endpoints/{endpoint_id}/mappings", response_model=List[schemas.IngestMapping])
async def set_mappings(
    *,
    db: AsyncSession = Depends(deps.get_db),
    endpoint_id: UUID = Path(..., description="The ID of the ingest endpoint"),
    mappings_in: List[schemas.IngestMappingCreate],
    ctx: ApiContext = Depends(deps.get_context),
) -> List[schemas.IngestMapping]:
    """Replace all mappings of an endpoint."""
    await _get_endpoint_or_404(db, endpoint_id)
    mappings = await crud.ingest_endpoint.set_mappings(
        db, endpoint_id=endpoint_id, mappings=mappings_in
    )
    ctx.logger.info(f"Set {len(mappings)} mappings on ingest endpoint {endpoint_id}")
    return [schemas.IngestMapping.model_validate(mapping) for mapping in mappings]


@router.post("/endpoints/{endpoint_id}/discovery")
async def discover_endpoint(
    *,
    endpoint_id: UUID = Path(..., description="The ID of the ingest endpoint"),
    infer: bool = Query(False, description="Infer the item list and fields from the response"),
    repository: IngestRepository = Depends(deps.get_repository),
    orchestrator: SourceSyncOrchestrator = Depends(deps.get_orchestrator),
    ctx: ApiContext = Depends(deps.get_context),
) -> Response:
    """Perform one authenticated request against the endpoint and return what came back.

    The response carries the upstream status code and body unchanged. With
    ``infer=true`` a JSON body is replaced by a schema inference over it, but
    the status code stays the upstream one. A source with a sync pass in
    progress answers 409.
    """
    endpoint = await repository.get_endpoint(endpoint_id)
    if not endpoint:
        raise EndpointNotFoundException(f"Ingest endpoint {endpoint_id} not found")
    source = await repository.get_source(endpoint.source_id)
    if not source:
        raise SourceNotFoundException(f"Ingest source {endpoint.source_id} not found")

    upstream = await orchestrator.preview(source, endpoint)
    ctx.logger.info(
        f"Discovery request for endpoint {endpoint_id} returned {upstream.status_code}"
    )

    if infer:
        try:
            discovery = discover_schema(upstream.content, upstream.status_code)
        except PayloadParseError:
            ctx.logger.warning("Discovery response is not JSON, returning it unchanged")
        else:
            return JSONResponse(
                status_code=upstream.status_code, content=discovery.model_dump(mode="json")
            )

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/json"),
    )
