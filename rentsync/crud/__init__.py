"""CRUD operations for the application."""

from .crud_asset import asset
from .crud_directory import company, person, place
from .crud_ingest_endpoint import ingest_endpoint
from .crud_ingest_source import ingest_source
from .crud_item_type import item_type
from .crud_outbox_event import outbox_event

__all__ = [
    "asset",
    "company",
    "ingest_endpoint",
    "ingest_source",
    "item_type",
    "outbox_event",
    "person",
    "place",
]
