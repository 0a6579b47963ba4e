"""CRUD operations for outbox events."""

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem
from rentsync.models.outbox_event import OutboxEvent


class CRUDOutboxEvent(
    CRUDBaseSystem[OutboxEvent, schemas.OutboxEventCreate, schemas.OutboxEventCreate]
):
    """CRUD operations for outbox events.

    Only appending lives here; delivery is handled by an external worker.
    """

    pass


outbox_event = CRUDOutboxEvent(OutboxEvent)
