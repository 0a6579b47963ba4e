# flake8: noqa: F401
"""Schemas for the application."""

from .asset import Asset, AssetCreate
from .company import Company, CompanyCreate
from .discovery import DiscoveryResponse, InferredField
from .ingest_endpoint import (
    IngestEndpoint,
    IngestEndpointCreate,
    IngestEndpointSyncState,
    IngestEndpointUpdate,
)
from .ingest_mapping import IngestMapping, IngestMappingCreate
from .ingest_source import (
    IngestSource,
    IngestSourceCreate,
    IngestSourceInDB,
    IngestSourceSyncState,
    IngestSourceTokenUpdate,
    IngestSourceUpdate,
)
from .item_type import ItemType, ItemTypeCreate
from .outbox_event import OutboxEvent, OutboxEventCreate
from .person import Person, PersonCreate
from .place import Place, PlaceCreate
