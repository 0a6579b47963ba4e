"""Normalization of JSON bodies that may arrive double-encoded.

Some upstream clients (and some admin UIs) serialize an already serialized
JSON document a second time, so a request body template or a credential
payload ends up stored as a JSON *string* containing JSON. ``unwrap_json``
undoes exactly one such layer.
"""

import json
from typing import Any, Optional, Union

RawJSON = Union[bytes, str]


def _is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def unwrap_json(raw: Optional[RawJSON]) -> Optional[RawJSON]:
    """Return the inner document of a double-encoded JSON value.

    If ``raw`` decodes to a JSON string whose content is itself valid JSON,
    the content is returned (as bytes when ``raw`` was bytes). Anything else is
    returned unchanged. Only one layer is removed: a triple-encoded value comes
    back double-encoded, and applying the function to an already unwrapped
    value is a no-op because an ordinary document is not a JSON string.

    Args:
        raw: The raw JSON text or bytes, or None.

    Returns:
        The unwrapped representation, or ``raw`` itself.
    """
    if not raw:
        return raw

    try:
        decoded = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return raw

    if not isinstance(decoded, str) or not _is_valid_json(decoded):
        return raw

    if isinstance(raw, bytes):
        return decoded.encode("utf-8")
    return decoded


def normalize_json_field(value: Any) -> Any:
    """Normalize a JSON-typed field received through the admin API.

    Structured values (dicts, lists, numbers, booleans, None) are stored as
    they are. Strings are treated as serialized JSON: one encoding layer is
    unwrapped and the result decoded, so ``'"{\\"a\\": 1}"'`` and
    ``'{"a": 1}'`` both become ``{"a": 1}``. Strings that are not JSON at all
    are kept verbatim.
    """
    if not isinstance(value, (str, bytes)):
        return value

    unwrapped = unwrap_json(value)
    try:
        return json.loads(unwrapped)
    except (ValueError, UnicodeDecodeError):
        return value


def encode_json_body(value: Any) -> Optional[bytes]:
    """Serialize a stored body template for sending, or None when there is nothing to send.

    A missing template, an empty string and the JSON literal ``null`` all mean
    "no body": they must never go out as the four bytes ``null``.
    """
    if value is None:
        return None

    if isinstance(value, (str, bytes)):
        body = unwrap_json(value)
        if isinstance(body, str):
            body = body.encode("utf-8")
        if not body.strip() or body.strip() == b"null":
            return None
        return body

    return json.dumps(value).encode("utf-8")
