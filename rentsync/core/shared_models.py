"""Shared models for the backend."""

from enum import Enum


class IngestAuthType(str, Enum):
    """How requests to an ingest source are authenticated."""

    NONE = "none"
    BEARER = "bearer"


class ResponseStrategy(str, Enum):
    """How items are located in an endpoint's response body."""

    SINGLE = "single"
    LIST = "list"
    AUTO = "auto"


class IngestTargetModel(str, Enum):
    """The internal entity kinds a mapping can write to."""

    ITEM_TYPE = "item_type"
    ASSET = "asset"
    COMPANY = "company"
    PERSON = "person"
    PLACE = "place"


class SyncStatus(str, Enum):
    """Outcome of the most recent pass over a source or endpoint."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class AuthState(str, Enum):
    """States of the per-source authentication state machine."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESH_IN_FLIGHT = "refresh_in_flight"


class AssetStatus(str, Enum):
    """Asset status enum."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    DEPLOYED = "deployed"
    RECALLED = "recalled"


class ItemKind(str, Enum):
    """Item type kind enum."""

    SERIALIZED = "serialized"
    FUNGIBLE = "fungible"
    KIT = "kit"


class OutboxEventType(str, Enum):
    """Kinds of domain events appended to the outbox."""

    ASSET_CREATED = "asset.created"
    ASSET_UPDATED = "asset.updated"
    ASSET_STATUS_CHANGED = "asset.status_changed"
    ITEM_TYPE_CREATED = "item_type.created"


class OutboxStatus(str, Enum):
    """Delivery status of an outbox event."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
