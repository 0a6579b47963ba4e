"""Router that serves every route with and without a trailing slash."""

from typing import Any, Callable

from fastapi import APIRouter
from fastapi.types import DecoratedCallable


class TrailingSlashRouter(APIRouter):
    """APIRouter that registers each path twice, once with a trailing slash.

    Only the slash-less path is part of the OpenAPI schema. Slash redirects are
    disabled on the app, so both spellings must be routed explicitly.

    Example:
        @router.get("/sources/{source_id}") answers /sources/1 and /sources/1/
    """

    def api_route(
        self, path: str, *, include_in_schema: bool = True, **kwargs: Any
    ) -> Callable[[DecoratedCallable], DecoratedCallable]:
        """Register ``path`` without and with its trailing slash."""
        path = path.rstrip("/")

        register = super().api_route(path, include_in_schema=include_in_schema, **kwargs)
        register_slashed = super().api_route(path + "/", include_in_schema=False, **kwargs)

        def decorator(func: DecoratedCallable) -> DecoratedCallable:
            register_slashed(func)
            return register(func)

        return decorator
