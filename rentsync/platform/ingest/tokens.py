"""Token discovery in arbitrary authentication responses."""

import math
from dataclasses import dataclass
from typing import Any, Optional

# Priority order matters: upstream APIs in the wild return several of these
# at once, and existing sources rely on which one wins.
ACCESS_TOKEN_KEYS = ("access_token", "api_token", "token", "accessToken", "jwt")
REFRESH_TOKEN_KEYS = ("refresh_token", "refreshToken", "refresh")
EXPIRY_KEYS = ("expires_in", "expiresIn", "expires")


@dataclass(frozen=True)
class DiscoveredTokens:
    """Best-effort result of scanning an auth response for tokens."""

    access_token: str = ""
    refresh_token: str = ""
    expires_in: int = 0


def _first_string(data: dict, keys: tuple[str, ...]) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _first_number(data: dict, keys: tuple[str, ...]) -> int:
    for key in keys:
        value = data.get(key)
        # bool is an int subclass but never a meaningful lifetime
        if isinstance(value, bool):
            continue
        if isinstance(value, float) and not math.isfinite(value):
            continue
        if isinstance(value, (int, float)):
            return int(value)
    return 0


def discover_tokens(data: Optional[Any]) -> DiscoveredTokens:
    """Find the access token, refresh token and lifetime in a decoded auth response.

    Each output is taken from the first key of its alias list that is present
    with a usable value; keys with the wrong type are skipped. Nothing found
    leaves the field empty (or zero), it never raises: a source without a
    discoverable token simply fails authentication later.

    Args:
        data: The decoded JSON body of an authentication response.

    Returns:
        DiscoveredTokens: The access token, refresh token and expiry in seconds.
    """
    if not isinstance(data, dict):
        return DiscoveredTokens()

    return DiscoveredTokens(
        access_token=_first_string(data, ACCESS_TOKEN_KEYS),
        refresh_token=_first_string(data, REFRESH_TOKEN_KEYS),
        expires_in=_first_number(data, EXPIRY_KEYS),
    )
