"""Request context for the admin API."""

from pydantic import BaseModel

from rentsync.core.logging import ContextualLogger


class ApiContext(BaseModel):
    """Request metadata plus a logger carrying it as dimensions.

    Injected into endpoints through ``deps.get_context``.
    """

    request_id: str
    logger: ContextualLogger

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True  # For ContextualLogger

    def __str__(self) -> str:
        """String representation for logging."""
        return f"ApiContext(request_id={self.request_id[:8]}...)"
