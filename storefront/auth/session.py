"""Session manager: token lifecycle, lazy profile loading, auth flows and logout."""
import asyncio
from enum import Enum
from typing import Mapping, Optional, Union
from urllib.parse import parse_qsl

from storefront.api.client import ApiClient, parse_model
from storefront.api.models import AuthResponse, MessageResponse, UserProfile
from storefront.errors import (
    AuthorizationError,
    StorefrontError,
    ValidationError,
    ERROR_EMAIL_REQUIRED,
    ERROR_OAUTH_FAILED,
    ERROR_PASSWORD_REQUIRED,
    ERROR_PASSWORD_TOO_SHORT,
)
from storefront.logging import get_logger, redact_secrets, sanitize_string_for_logging
from storefront.navigation import LANDING_PAGE, LOGIN_PAGE, Navigator

from .credentials import CredentialStore

logger = get_logger(__name__)

LOGIN_ENDPOINT = "/auth/login"
LOGOUT_ENDPOINT = "/auth/logout"
REGISTER_ENDPOINT = "/auth/register"
CONFIRM_EMAIL_ENDPOINT = "/auth/confirm"
OAUTH_CALLBACK_ENDPOINT = "/auth/google/callback"
FORGOT_PASSWORD_ENDPOINT = "/auth/forgot-password"
RESET_PASSWORD_ENDPOINT = "/auth/reset-password"

ERROR_PAGE = "/error"
MIN_PASSWORD_LENGTH = 6


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_PRESENT_UNVERIFIED = "token_present_unverified"
    AUTHENTICATED = "authenticated"


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError(ERROR_EMAIL_REQUIRED)
    return email


def validate_password(password: str) -> str:
    if not password:
        raise ValidationError(ERROR_PASSWORD_REQUIRED)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(ERROR_PASSWORD_TOO_SHORT)
    return password


class SessionManager:
    """
    Owns the authenticated session.

    States:
        UNAUTHENTICATED -> TOKEN_PRESENT_UNVERIFIED (token acquired)
        TOKEN_PRESENT_UNVERIFIED -> AUTHENTICATED (profile fetched)
        any -> UNAUTHENTICATED (logout, rejected token)

    Concurrent load_user_data() calls share one in-flight fetch.
    """

    def __init__(self, api: ApiClient, credentials: CredentialStore, navigator: Navigator):
        self.api = api
        self.credentials = credentials
        self.navigator = navigator
        self.error: Optional[StorefrontError] = None
        self._load_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def token(self) -> Optional[str]:
        return self.credentials.token

    @property
    def user(self) -> Optional[UserProfile]:
        return self.credentials.user

    @property
    def is_authenticated(self) -> bool:
        return self.credentials.token is not None

    @property
    def loading(self) -> bool:
        return self._load_task is not None

    @property
    def state(self) -> SessionState:
        if self.credentials.token is None:
            return SessionState.UNAUTHENTICATED
        if self.credentials.user is None:
            return SessionState.TOKEN_PRESENT_UNVERIFIED
        return SessionState.AUTHENTICATED

    def _is_current(self, token: str) -> bool:
        """False once closed or when the token changed underneath a fetch."""
        return not self._closed and self.credentials.token == token

    async def start(self) -> SessionState:
        """Initial load: fetch the profile once when only the token was persisted."""
        if self.state is SessionState.TOKEN_PRESENT_UNVERIFIED:
            try:
                await self.load_user_data()
            except StorefrontError as e:
                logger.warning(f"Initial profile load failed: {redact_secrets(e)}")
        return self.state

    def close(self) -> None:
        """Stop applying results of fetches still in flight."""
        self._closed = True

    async def load_user_data(self) -> Optional[UserProfile]:
        """
        Fetch and cache the profile for the current token.

        No-op without a token or when the profile is already cached. A 401
        clears the session; other failures keep the credentials, are stored
        in `error` and raised to every caller waiting on the fetch.
        """
        if self._closed or self.credentials.token is None:
            return None
        if self.credentials.user is not None:
            return self.credentials.user

        if self._load_task is None:
            self._load_task = asyncio.create_task(self._fetch_user(self.credentials.token))
        return await asyncio.shield(self._load_task)

    async def _fetch_user(self, token: str) -> Optional[UserProfile]:
        try:
            user = await self.api.fetch_current_user(token)
        except AuthorizationError:
            if self._is_current(token):
                logger.warning("Stored token was rejected, clearing session")
                self.credentials.clear()
            return None
        except StorefrontError as e:
            if not self._closed:
                self.error = e
            raise
        finally:
            self._load_task = None

        if not self._is_current(token):
            return None
        self.credentials.set_user(user)
        self.error = None
        return user

    async def logout(self) -> None:
        """
        Best-effort backend logout; local credentials are cleared regardless
        and the user is sent to the landing page.
        """
        try:
            if self.credentials.token is not None:
                await self.api.post(LOGOUT_ENDPOINT, auth_flow=True)
        except StorefrontError as e:
            logger.warning(f"Backend logout failed, clearing local session anyway: {redact_secrets(e)}")
        finally:
            self.credentials.clear()
            self.error = None
            self.navigator.navigate(LANDING_PAGE)
        logger.info("User logged out")

    # ==================== AUTH FLOWS ====================

    async def login(self, email: str, password: str) -> Optional[UserProfile]:
        """Exchange e-mail and password for a token."""
        email = validate_email(email)
        if not password:
            raise ValidationError(ERROR_PASSWORD_REQUIRED)

        data = await self.api.post(
            LOGIN_ENDPOINT, json={"email": email, "password": password}, auth_flow=True
        )
        auth = parse_model(AuthResponse, data)
        self.credentials.set_token(auth.token, auth.user)
        self.error = None
        logger.info(f"User {sanitize_string_for_logging(email)} logged in")
        self.navigator.navigate(LANDING_PAGE)
        return auth.user

    async def register(self, name: str, email: str, password: str) -> MessageResponse:
        """Create an account. The backend sends a confirmation e-mail; no token is issued."""
        email = validate_email(email)
        password = validate_password(password)

        data = await self.api.post(
            REGISTER_ENDPOINT,
            json={"name": (name or "").strip(), "email": email, "password": password},
            auth_flow=True,
        )
        return parse_model(MessageResponse, data or {})

    async def confirm_email(self, token: str) -> MessageResponse:
        if not token:
            raise ValidationError("Confirmation token is missing")
        data = await self.api.get(CONFIRM_EMAIL_ENDPOINT, params={"token": token}, auth_flow=True)
        return parse_model(MessageResponse, data or {})

    async def complete_oauth(self, query: Union[str, Mapping[str, str]]) -> SessionState:
        """
        Finish the Google sign-in redirect.

        `query` is the callback's query string (or its parsed mapping). The
        profile is loaded lazily when the backend does not return it.
        """
        params = dict(parse_qsl(query.lstrip("?"))) if isinstance(query, str) else dict(query)

        if params.get("error"):
            self.navigator.navigate(ERROR_PAGE, {"message": params["error"]})
            raise AuthorizationError(params["error"])

        try:
            data = await self.api.get(OAUTH_CALLBACK_ENDPOINT, params=params, auth_flow=True)
        except StorefrontError as e:
            message = ERROR_OAUTH_FAILED
            if "duplicate key value" in str(e):
                message = (
                    "This email is already registered. "
                    "Please try logging in with your password."
                )
            self.navigator.navigate(ERROR_PAGE, {"message": message})
            raise

        auth = parse_model(AuthResponse, data)
        self.credentials.set_token(auth.token, auth.user)
        self.error = None
        self.navigator.navigate(LANDING_PAGE)
        return self.state

    async def request_password_reset(self, email: str) -> MessageResponse:
        email = validate_email(email)
        data = await self.api.post(FORGOT_PASSWORD_ENDPOINT, json={"email": email}, auth_flow=True)
        return parse_model(MessageResponse, data or {})

    async def reset_password(self, token: str, password: str) -> MessageResponse:
        if not token:
            raise ValidationError("Reset token is missing")
        password = validate_password(password)
        data = await self.api.post(
            RESET_PASSWORD_ENDPOINT,
            json={"token": token, "password": password},
            auth_flow=True,
        )
        self.navigator.navigate(LOGIN_PAGE)
        return parse_model(MessageResponse, data or {})
