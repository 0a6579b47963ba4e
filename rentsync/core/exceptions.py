"""Shared exceptions module."""

from typing import Optional

from pydantic import ValidationError


class RentsyncException(Exception):
    """Base exception for rentsync services."""

    pass


class NotFoundException(RentsyncException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class SourceNotFoundException(NotFoundException):
    """Raised when an ingest source is not found."""

    pass


class EndpointNotFoundException(NotFoundException):
    """Raised when an ingest endpoint is not found."""

    pass


class ConfigurationError(RentsyncException):
    """Raised when a source, endpoint or mapping is configured in a way that cannot work.

    Fatal to the single source or item it concerns, never to the whole sweep.
    """

    def __init__(self, message: Optional[str] = "Invalid ingest configuration"):
        """Create a new ConfigurationError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class MalformedPathError(ConfigurationError):
    """Raised when a path expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        """Create a new MalformedPathError instance.

        Args:
        ----
            expression (str): The offending path expression.
            reason (str): What is wrong with it.

        """
        self.expression = expression
        self.reason = reason
        super().__init__(f"Malformed path expression '{expression}': {reason}")


class TransportError(RentsyncException):
    """Raised when an upstream request fails or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Create a new TransportError instance.

        Args:
        ----
            message (str): The error message.
            status_code (int, optional): The upstream status code, if a response was received.

        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class PayloadParseError(RentsyncException):
    """Raised when an upstream body is not valid JSON."""

    def __init__(self, message: Optional[str] = "Upstream payload is not valid JSON"):
        """Create a new PayloadParseError instance."""
        self.message = message
        super().__init__(self.message)


class ItemMappingError(RentsyncException):
    """Raised when a single item cannot be mapped or resolved.

    Logged and skipped by the orchestrator; sibling items keep going.
    """

    def __init__(self, message: str, target_model: Optional[str] = None):
        """Create a new ItemMappingError instance.

        Args:
        ----
            message (str): The error message.
            target_model (str, optional): The entity kind the failure concerns.

        """
        self.message = message
        self.target_model = target_model
        super().__init__(self.message)


class AuthenticationError(RentsyncException):
    """Raised when obtaining a token for a source fails.

    Carries the upstream response that triggered the refresh, so callers can
    report the original status and body instead of a generic one.
    """

    def __init__(
        self,
        message: Optional[str] = "Authentication failed",
        upstream_status: Optional[int] = None,
        upstream_body: Optional[bytes] = None,
    ):
        """Create a new AuthenticationError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.
            upstream_status (int, optional): Status of the rejected upstream request.
            upstream_body (bytes, optional): Body of the rejected upstream request.

        """
        self.message = message
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(self.message)


class SyncInProgressError(RentsyncException):
    """Raised when an operation on a source's token state meets a running sync pass."""

    def __init__(self, source_id: str):
        """Create a new SyncInProgressError instance."""
        self.source_id = source_id
        self.message = f"Sync already in progress for source {source_id}"
        super().__init__(self.message)


def unpack_validation_error(exc: ValidationError) -> dict:
    """Unpack a Pydantic validation error into a dictionary.

    Args:
    ----
        exc (ValidationError): The Pydantic validation error.

    Returns:
    -------
        dict: The dictionary representation of the validation error.

    """
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        error_messages.append({field: error["msg"]})

    return {"errors": error_messages}
