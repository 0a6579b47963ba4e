"""Models for the application."""

from .asset import Asset
from .company import Company
from .ingest_endpoint import IngestEndpoint
from .ingest_mapping import IngestMapping
from .ingest_source import IngestSource
from .item_type import ItemType
from .outbox_event import OutboxEvent
from .person import Person
from .place import Place

__all__ = [
    "Asset",
    "Company",
    "IngestEndpoint",
    "IngestMapping",
    "IngestSource",
    "ItemType",
    "OutboxEvent",
    "Person",
    "Place",
]
