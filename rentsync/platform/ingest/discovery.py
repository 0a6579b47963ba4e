"""Schema inference over a sample upstream response, for configuring mappings."""

import json
from typing import Any, Optional

from rentsync import schemas
from rentsync.core.exceptions import PayloadParseError
from rentsync.platform.ingest.payload import unwrap_json

LIST_KEYS = ("data", "items", "results", "records", "devices")
MAX_SAMPLE_ITEMS = 5

IDENTITY_HINTS = ("id", "tag", "token", "serial")


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return "unknown"


def _locate_items(data: Any) -> tuple[list[Any], Optional[str]]:
    if isinstance(data, list):
        return data, "$"
    if isinstance(data, dict):
        for key in LIST_KEYS:
            if isinstance(data.get(key), list):
                return data[key], f"$.{key}"
    return [], None


def _infer_field(key: str, value: Any) -> schemas.InferredField:
    field = schemas.InferredField(
        path=f"$.{key}",
        label=key.replace("_", " ").title(),
        type=_json_type(value),
    )
    if field.type != "string":
        return field

    lowered = key.lower()
    field.is_identity = any(hint in lowered for hint in IDENTITY_HINTS)
    if "name" in lowered:
        field.suggested_mapping, field.suggested_model = "name", "asset"
    elif "tag" in lowered:
        field.suggested_mapping, field.suggested_model = "asset_tag", "asset"
    elif "serial" in lowered:
        field.suggested_mapping, field.suggested_model = "serial_number", "asset"
    return field


def discover_schema(body: bytes, upstream_status: int) -> schemas.DiscoveryResponse:
    """Find the item list in a response body and infer the fields of its first item.

    The list is either the top-level array or the first of the common wrapper
    keys (``data``, ``items``, ``results``, ``records``, ``devices``) holding an
    array. Up to five items are returned as samples.

    Args:
        body: The raw upstream response body
        upstream_status: The upstream status, passed through unchanged

    Returns:
        The inference; without a recognizable item list only the raw response is set.

    Raises:
        PayloadParseError: If the body is not JSON.
    """
    try:
        data = json.loads(unwrap_json(body))
    except ValueError as e:
        raise PayloadParseError(f"Upstream response is not valid JSON: {e}") from e

    response = schemas.DiscoveryResponse(upstream_status=upstream_status, raw_response=data)

    items, items_path = _locate_items(data)
    if not items:
        return response

    response.items_path = items_path
    response.sample_items = items[:MAX_SAMPLE_ITEMS]
    if isinstance(items[0], dict):
        response.inferred_fields = [_infer_field(key, value) for key, value in items[0].items()]
    return response
