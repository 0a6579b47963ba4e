"""Path expressions for pulling values out of arbitrarily nested JSON.

Supports the JSONPath subset that mapping configurations use in practice:

    $                  the whole document
    $.device.serial    object keys (the leading ``$`` is optional)
    $['model name']    quoted keys, for names with dots or spaces
    $.ports[0]         array indices, negative indices count from the end
    $.ports[*].mac     wildcards over arrays or object values (also ``.*``)

A path without wildcards yields one value; a path with wildcards yields a
list of every match.
"""

import re
from functools import lru_cache
from typing import Any, Optional, Union

from rentsync.core.exceptions import MalformedPathError
from rentsync.core.shared_models import ResponseStrategy

_NAME_RE = re.compile(r"[^.\[\]\s]+")
_INDEX_RE = re.compile(r"-?\d+")

Step = tuple[str, Union[str, int, None]]

KEY = "key"
INDEX = "index"
WILDCARD = "wildcard"


class PathNotFound(LookupError):
    """Raised when a path expression does not match anything in the document."""

    def __init__(self, expression: str, position: str):
        """Create a new PathNotFound instance."""
        self.expression = expression
        self.position = position
        super().__init__(f"'{expression}' has no match at {position}")


def _parse_bracket(expression: str, text: str, pos: int) -> tuple[Step, int]:
    """Parse one ``[...]`` segment starting at ``pos`` (which points at ``[``)."""
    end = text.find("]", pos)
    if end == -1:
        raise MalformedPathError(expression, "unclosed '['")
    inner = text[pos + 1 : end].strip()

    if inner == "*":
        return (WILDCARD, None), end + 1
    if _INDEX_RE.fullmatch(inner):
        return (INDEX, int(inner)), end + 1
    if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in ("'", '"'):
        return (KEY, inner[1:-1]), end + 1
    raise MalformedPathError(expression, f"unsupported selector '[{inner}]'")


@lru_cache(maxsize=1024)
def compile_path(expression: str) -> tuple[Step, ...]:
    """Compile a path expression into a tuple of lookup steps.

    Raises:
        MalformedPathError: If the expression cannot be parsed.
    """
    if expression is None or not expression.strip():
        raise MalformedPathError(str(expression), "empty expression")

    text = expression.strip()
    pos = 0
    if text.startswith("$"):
        pos = 1
    elif not text.startswith("["):
        # Relative form: "device.serial" is read as "$.device.serial"
        text = "." + text

    steps: list[Step] = []
    while pos < len(text):
        char = text[pos]
        if char == ".":
            if text.startswith("..", pos):
                raise MalformedPathError(expression, "recursive descent is not supported")
            if text.startswith(".*", pos):
                steps.append((WILDCARD, None))
                pos += 2
                continue
            match = _NAME_RE.match(text, pos + 1)
            if not match:
                raise MalformedPathError(expression, f"expected a key after '.' at {pos}")
            steps.append((KEY, match.group(0)))
            pos = match.end()
        elif char == "[":
            step, pos = _parse_bracket(expression, text, pos)
            steps.append(step)
        else:
            raise MalformedPathError(expression, f"unexpected '{char}' at {pos}")

    return tuple(steps)


def _apply(step: Step, value: Any) -> list[Any]:
    """Apply one step to one value, returning every match (possibly none)."""
    kind, arg = step
    if kind == KEY:
        if isinstance(value, dict) and arg in value:
            return [value[arg]]
        return []
    if kind == INDEX:
        if isinstance(value, list) and -len(value) <= arg < len(value):
            return [value[arg]]
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return list(value.values())
    return []


def lookup(data: Any, expression: str) -> Any:
    """Evaluate ``expression`` against ``data``.

    Args:
        data: A decoded JSON value (object, array or scalar).
        expression: The path expression.

    Returns:
        The matched value, or the list of matches if the path has wildcards.

    Raises:
        MalformedPathError: If the expression cannot be parsed.
        PathNotFound: If a path without wildcards has no match.
    """
    steps = compile_path(expression)
    has_wildcard = any(kind == WILDCARD for kind, _ in steps)

    current = [data]
    for position, step in enumerate(steps):
        current = [match for value in current for match in _apply(step, value)]
        if not current and not has_wildcard:
            raise PathNotFound(expression, f"step {position + 1}")

    if has_wildcard:
        return current
    return current[0]


def extract_items(
    data: Any, strategy: Union[ResponseStrategy, str], items_path: Optional[str] = None
) -> list[Any]:
    """Locate the list of items in a decoded response body.

    ``items_path`` wins when it is set (and not just ``$``) and matches: a
    list becomes the items, any other value a single item. When it does not
    match, the response strategy decides: ``list`` requires a top-level array,
    ``single`` treats the whole body as one item and ``auto`` accepts either.

    Raises:
        MalformedPathError: If ``items_path`` cannot be parsed.
    """
    if items_path and items_path.strip() != "$":
        try:
            found = lookup(data, items_path)
        except PathNotFound:
            pass
        else:
            if isinstance(found, list):
                return found
            return [found]

    strategy = ResponseStrategy(strategy)
    if strategy == ResponseStrategy.LIST:
        return data if isinstance(data, list) else []
    if strategy == ResponseStrategy.SINGLE:
        return [data]
    return data if isinstance(data, list) else [data]
