"""Common test fixtures and configuration for pytest."""

# Import all fixtures so they are automatically available for all tests
from tests.fixtures.common import (  # noqa
    api_context,
    mock_db,
    mock_scheduler,
    repository,
)
