"""Navigation state seen by the session and gateway layers."""
from typing import List, Mapping, Optional
from urllib.parse import urlencode, urlsplit

from storefront.logging import get_logger

logger = get_logger(__name__)

LANDING_PAGE = "/"
LOGIN_PAGE = "/login"
SESSION_EXPIRED_PARAM = "session_expired"

# Pages that handle their own 401s; forcing a redirect from them would loop
AUTH_PAGES = frozenset({
    "/login",
    "/signup",
    "/confirm-email",
    "/auth/google",
    "/auth/google/callback",
    "/forgot-password",
    "/reset-password",
})


def is_auth_page(path: str) -> bool:
    route = urlsplit(path).path.rstrip("/") or "/"
    return route in AUTH_PAGES


class Navigator:
    """Tracks the current location and records every navigation."""

    def __init__(self, current_path: str = LANDING_PAGE):
        self.current_path = current_path
        self.history: List[str] = [current_path]

    def navigate(self, path: str, params: Optional[Mapping[str, str]] = None) -> str:
        target = f"{path}?{urlencode(params)}" if params else path
        logger.debug(f"Navigating {self.current_path} -> {target}")
        self.current_path = target
        self.history.append(target)
        return target

    @property
    def on_auth_page(self) -> bool:
        return is_auth_page(self.current_path)
