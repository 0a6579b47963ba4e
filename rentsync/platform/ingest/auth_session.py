"""Per-source authentication for requests to ingest sources."""

import asyncio
import json
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import httpx

from rentsync import schemas
from rentsync.core.config import settings
from rentsync.core.datetime_utils import ensure_naive_utc, utc_now_naive
from rentsync.core.exceptions import AuthenticationError, ConfigurationError
from rentsync.core.logging import ContextualLogger, logger
from rentsync.core.shared_models import AuthState, IngestAuthType
from rentsync.platform.ingest.payload import encode_json_body, unwrap_json
from rentsync.platform.ingest.repository import IngestRepository
from rentsync.platform.ingest.tokens import DiscoveredTokens, discover_tokens

REJECTED_STATUSES = (401, 403)

# Longer lifetimes are epoch timestamps or garbage, not durations
MAX_TOKEN_LIFETIME_SECONDS = 10 * 365 * 24 * 60 * 60

RequestBuilder = Callable[[], httpx.Request]


def resolve_url(base_url: str, path: str) -> str:
    """Join a path onto a source's base URL, leaving absolute URLs alone."""
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def _decode(response: httpx.Response) -> Any:
    return json.loads(unwrap_json(response.content))


class AuthSessionManager:
    """Tracks and refreshes the bearer token of one source during a pass.

    Requests go through ``send``: the current token is attached, and when the
    upstream rejects it with 401 or 403 the token is refreshed and the request
    is retried exactly once. Whatever the retry returns is final, so a
    misconfigured auth endpoint can never cause a refresh loop.
    """

    def __init__(
        self,
        source: schemas.IngestSourceInDB,
        repository: IngestRepository,
        client: httpx.AsyncClient,
        logger: Optional[ContextualLogger] = None,
        expiry_skew_seconds: Optional[int] = None,
    ):
        """Initialize the session for one source.

        Args:
            source: The source, including its stored token state
            repository: Where refreshed tokens are persisted
            client: The HTTP client used for every upstream request
            logger: Optional contextual logger
            expiry_skew_seconds: Refresh this long before the token expires
        """
        self.source = source
        self.repository = repository
        self.client = client
        self.logger = logger or _default_logger(source)
        self.expiry_skew = timedelta(
            seconds=(
                settings.INGEST_TOKEN_EXPIRY_SKEW_SECONDS
                if expiry_skew_seconds is None
                else expiry_skew_seconds
            )
        )

        self._token = source.last_token or ""
        self._refresh_token = source.refresh_token or ""
        self._token_expiry = ensure_naive_utc(source.token_expiry)
        self._refresh_lock = asyncio.Lock()

        self.state = AuthState.AUTHENTICATED if self._token else AuthState.UNAUTHENTICATED

    @property
    def is_bearer(self) -> bool:
        """Whether requests to this source carry a bearer token."""
        return IngestAuthType(self.source.auth_type) == IngestAuthType.BEARER

    @property
    def token(self) -> str:
        """The current access token (possibly empty)."""
        return self._token

    def authorize(self, headers: httpx.Headers) -> httpx.Headers:
        """Attach the bearer token, if this source uses one and a token is known."""
        if self.is_bearer and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def token_expires_soon(self) -> bool:
        """Whether the stored expiry falls within the refresh window."""
        if not self._token_expiry:
            return False
        return utc_now_naive() + self.expiry_skew >= self._token_expiry

    async def ensure_fresh(self) -> None:
        """Refresh ahead of time when the token is about to expire."""
        if self.is_bearer and self.token_expires_soon():
            self.logger.info("Token for source expires soon, refreshing before request")
            await self.refresh()

    async def send(self, build_request: RequestBuilder) -> httpx.Response:
        """Send a request with authentication, retrying once after a rejection.

        Args:
            build_request: Builds a fresh request; called again for the retry

        Returns:
            The upstream response. After a refresh this is the retry's response,
            whatever its status.

        Raises:
            AuthenticationError: If the refresh after a rejection fails. It
                carries the status and body of the rejected request.
            httpx.HTTPError: On transport failures.
        """
        await self.ensure_fresh()

        request = build_request()
        self.authorize(request.headers)
        response = await self.client.send(request)

        if not self.is_bearer or response.status_code not in REJECTED_STATUSES:
            return response

        self.logger.warning(
            f"Upstream rejected request to {request.url.path} with {response.status_code}, "
            "refreshing token"
        )
        try:
            await self.refresh()
        except AuthenticationError as e:
            raise AuthenticationError(
                f"Token refresh failed after {response.status_code}: {e.message}",
                upstream_status=response.status_code,
                upstream_body=response.content,
            ) from e

        retry = build_request()
        self.authorize(retry.headers)
        return await self.client.send(retry)

    async def refresh(self) -> str:
        """Obtain a new token and persist it in a single write.

        Returns:
            The new access token

        Raises:
            AuthenticationError: If no token could be obtained
        """
        async with self._refresh_lock:
            self.state = AuthState.REFRESH_IN_FLIGHT
            try:
                tokens = await self._obtain_tokens()
            except ConfigurationError as e:
                self.state = AuthState.UNAUTHENTICATED
                self.logger.error(f"Cannot refresh token: {e.message}")
                raise AuthenticationError(e.message) from e
            except AuthenticationError:
                self.state = AuthState.UNAUTHENTICATED
                raise

            if not tokens.access_token:
                self.state = AuthState.UNAUTHENTICATED
                raise AuthenticationError("No access token found in authentication response")

            await self._store_tokens(tokens)
            self.state = AuthState.AUTHENTICATED
            self.logger.info("Refreshed token for source")
            return self._token

    async def _obtain_tokens(self) -> DiscoveredTokens:
        if self.source.refresh_endpoint and self._refresh_token:
            tokens = await self._exchange_refresh_token()
            if tokens.access_token:
                return tokens

        data = await self._login()
        return discover_tokens(data)

    async def _exchange_refresh_token(self) -> DiscoveredTokens:
        """Trade the refresh token for a new access token; empty result on any failure."""
        url = resolve_url(self.source.base_url, self.source.refresh_endpoint)
        try:
            response = await self.client.post(url, json={"refresh_token": self._refresh_token})
        except httpx.HTTPError as e:
            self.logger.warning(f"Refresh token exchange failed: {e}")
            return DiscoveredTokens()

        if not _is_success(response):
            self.logger.warning(
                f"Refresh token exchange returned {response.status_code}, falling back to login"
            )
            return DiscoveredTokens()

        try:
            return discover_tokens(_decode(response))
        except ValueError:
            self.logger.warning("Refresh token response is not valid JSON, falling back to login")
            return DiscoveredTokens()

    async def _login(self) -> Any:
        if not self.source.auth_endpoint:
            raise ConfigurationError(
                f"Source '{self.source.name}' uses bearer auth but has no auth_endpoint"
            )

        body = encode_json_body(self.source.auth_credentials)
        headers = {"Accept": "application/json"}
        if body is not None:
            headers["Content-Type"] = "application/json"

        data = await self._post_auth_step(
            "Login",
            resolve_url(self.source.base_url, self.source.auth_endpoint),
            content=body,
            headers=headers,
        )

        if self.source.verify_endpoint:
            login_token = discover_tokens(data).access_token
            headers = {"Accept": "application/json"}
            if login_token:
                headers["Authorization"] = f"Bearer {login_token}"
            data = await self._post_auth_step(
                "Verification",
                resolve_url(self.source.base_url, self.source.verify_endpoint),
                json=data,
                headers=headers,
            )

        return data

    async def _post_auth_step(self, step: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"{step} request failed: {e}") from e

        if not _is_success(response):
            raise AuthenticationError(
                f"{step} failed with status {response.status_code}",
                upstream_status=response.status_code,
                upstream_body=response.content,
            )

        try:
            return _decode(response)
        except ValueError as e:
            raise AuthenticationError(f"{step} response is not valid JSON") from e

    async def _store_tokens(self, tokens: DiscoveredTokens) -> None:
        self._token = tokens.access_token
        if tokens.refresh_token:
            self._refresh_token = tokens.refresh_token
        self._token_expiry = self._expiry_from_lifetime(tokens.expires_in)

        await self.repository.update_source_tokens(
            self.source.id,
            schemas.IngestSourceTokenUpdate(
                last_token=self._token,
                refresh_token=self._refresh_token or None,
                token_expiry=self._token_expiry,
            ),
        )

    def _expiry_from_lifetime(self, expires_in: int) -> Optional[datetime]:
        """Absolute expiry for a token lifetime; None when there is no usable lifetime."""
        if expires_in <= 0:
            return None
        if expires_in > MAX_TOKEN_LIFETIME_SECONDS:
            self.logger.warning(
                f"Ignoring implausible token lifetime of {expires_in}s, storing no expiry"
            )
            return None
        return utc_now_naive() + timedelta(seconds=expires_in)


def _default_logger(source: schemas.IngestSourceInDB) -> ContextualLogger:
    return logger.with_context(source_id=str(source.id), source_name=source.name)
