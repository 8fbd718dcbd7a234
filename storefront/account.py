"""Signed-in account operations: order history, profile and password."""
from typing import List

from storefront.api.client import ApiClient, parse_model
from storefront.api.models import OrderSummary, UserProfile
from storefront.auth.session import SessionManager, validate_password
from storefront.errors import AuthorizationError, ValidationError, ERROR_LOGIN_REQUIRED
from storefront.logging import get_logger
from storefront.navigation import LOGIN_PAGE

logger = get_logger(__name__)

ORDER_HISTORY_ENDPOINT = "/user/orders"
PROFILE_ENDPOINT = "/user/profile"
PASSWORD_ENDPOINT = "/user/password"

EDITABLE_PROFILE_FIELDS = frozenset({"name", "email", "picture"})


class AccountService:
    """Account pages' backend calls. All go through the gateway's 401 policy."""

    def __init__(self, api: ApiClient, session: SessionManager):
        self.api = api
        self.session = session

    def _require_login(self) -> None:
        if not self.session.is_authenticated:
            self.session.navigator.navigate(LOGIN_PAGE)
            raise AuthorizationError(ERROR_LOGIN_REQUIRED)

    async def order_history(self) -> List[OrderSummary]:
        self._require_login()
        data = await self.api.get(ORDER_HISTORY_ENDPOINT)

        # Backend returns either a bare list or {"orders": [...]}
        if isinstance(data, dict):
            data = data.get("orders")
        if not isinstance(data, list):
            logger.warning(f"Invalid order history format: {type(data).__name__}")
            return []
        return [parse_model(OrderSummary, row) for row in data]

    async def update_profile(self, **fields) -> UserProfile:
        self._require_login()
        unknown = set(fields) - EDITABLE_PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")

        data = await self.api.put(PROFILE_ENDPOINT, json=fields)
        user = parse_model(UserProfile, data)
        self.session.credentials.set_user(user)
        return user

    async def change_password(self, current_password: str, new_password: str) -> None:
        self._require_login()
        if not current_password:
            raise ValidationError("Current password is required")
        validate_password(new_password)
        if current_password == new_password:
            raise ValidationError("New password must differ from the current one")

        await self.api.put(
            PASSWORD_ENDPOINT,
            json={"current_password": current_password, "new_password": new_password},
        )
        logger.info("Password changed")
