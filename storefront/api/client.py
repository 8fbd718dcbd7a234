"""
Request gateway.

Every backend call goes through ApiClient.send(): the bearer token is
attached, non-2xx answers become ApiError, and a 401 runs the bounded
recovery policy:

1. On an auth-flow page (or for an auth-flow request) the 401 is just raised.
2. Otherwise, if a token exists and the request was not retried yet, the
   profile is fetched once directly (outside this interceptor). On success
   the cached profile is refreshed and the request is resubmitted once.
3. In every other case credentials are cleared and the user is sent to the
   login page with a session-expired marker.
"""
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from storefront.config import Settings
from storefront.errors import (
    ApiError,
    AuthorizationError,
    NetworkError,
    SessionExpiredError,
    StorefrontError,
)
from storefront.logging import get_logger, redact_secrets, sanitize_string_for_logging
from storefront.navigation import LOGIN_PAGE, SESSION_EXPIRED_PARAM, Navigator

from .models import UserProfile

if TYPE_CHECKING:
    from storefront.auth.credentials import CredentialStore

logger = get_logger(__name__)

ME_ENDPOINT = "/user/me"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class PendingRequest:
    """One logical backend call and whether it was already resubmitted."""
    method: str
    path: str
    json: Any = None
    params: Optional[Mapping[str, Any]] = None
    auth_flow: bool = False
    retried: bool = False

    def mark_retried(self) -> "PendingRequest":
        return replace(self, retried=True)


def _error_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            if data.get(key):
                return str(data[key])
    return response.reason_phrase


def decode_json(response: httpx.Response) -> Any:
    """Decoded JSON body, or None for an empty body."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        raise ApiError(response.status_code, "Malformed response from server")


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a decoded body against a response model."""
    try:
        return model.model_validate(data)
    except ValueError as e:
        logger.warning(f"Unexpected {model.__name__} payload: {redact_secrets(e)}")
        raise ApiError(200, "Malformed response from server")


class ApiClient:
    """Single HTTP client wrapper for all backend calls."""

    def __init__(
        self,
        settings: Settings,
        credentials: "CredentialStore",
        navigator: Navigator,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.credentials = credentials
        self.navigator = navigator
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of shared httpx client with timeouts."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.api_url,
                timeout=httpx.Timeout(
                    self.settings.http_timeout, connect=self.settings.connect_timeout
                ),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _dispatch(self, pending: PendingRequest, token: Optional[str]) -> httpx.Response:
        """Put one request on the wire. No status handling."""
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            return await self._get_http_client().request(
                pending.method,
                pending.path,
                json=pending.json,
                params=pending.params,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.warning(f"Network error on {pending.method} {pending.path}: {redact_secrets(e)}")
            raise NetworkError() from e

    async def send(self, pending: PendingRequest) -> httpx.Response:
        """Send a request through the interceptor. Returns only 2xx responses."""
        response = await self._dispatch(pending, self.credentials.token)

        if response.status_code == 401:
            return await self._handle_unauthorized(pending, response)
        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(
                f"{pending.method} {pending.path} failed with {response.status_code}: "
                f"{sanitize_string_for_logging(detail)}"
            )
            raise ApiError(response.status_code, detail)
        return response

    async def _handle_unauthorized(
        self, pending: PendingRequest, response: httpx.Response
    ) -> httpx.Response:
        detail = _error_detail(response)

        # Auth pages deal with their own 401s
        if pending.auth_flow or self.navigator.on_auth_page:
            raise AuthorizationError(detail)

        token = self.credentials.token
        if token and not pending.retried:
            if await self._recover(token):
                logger.info(f"Session recovered, retrying {pending.method} {pending.path}")
                return await self.send(pending.mark_retried())

        self._expire_session()
        raise SessionExpiredError()

    async def _recover(self, token: str) -> bool:
        """Refresh the cached profile with a direct call. True if the token still works."""
        try:
            user = await self.fetch_current_user(token)
        except StorefrontError as e:
            logger.warning(f"Session recovery failed: {redact_secrets(e)}")
            return False

        if self.credentials.token != token:
            # Logged out or replaced while we were waiting
            return False
        self.credentials.set_user(user)
        return True

    def _expire_session(self) -> None:
        logger.warning("Session expired, clearing credentials")
        self.credentials.clear()
        self.navigator.navigate(LOGIN_PAGE, {SESSION_EXPIRED_PARAM: "1"})

    async def fetch_current_user(self, token: str) -> UserProfile:
        """
        GET /user/me with the given token, bypassing the 401 interceptor.

        Raises:
            AuthorizationError: token rejected
            ApiError: any other non-2xx
            NetworkError: no response
        """
        response = await self._dispatch(PendingRequest("GET", ME_ENDPOINT), token)
        if response.status_code == 401:
            raise AuthorizationError(_error_detail(response))
        if not response.is_success:
            raise ApiError(response.status_code, _error_detail(response))
        return parse_model(UserProfile, decode_json(response))

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        auth_flow: bool = False,
    ) -> Any:
        """Send a request and return its decoded JSON body."""
        pending = PendingRequest(method.upper(), path, json=json, params=params, auth_flow=auth_flow)
        response = await self.send(pending)
        return decode_json(response)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)
