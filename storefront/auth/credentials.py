"""Token and cached profile, mirrored in the durable store."""
from typing import Callable, List, Optional

from storefront.api.models import UserProfile
from storefront.logging import get_logger
from storefront.storage import JsonRepository, KeyValueStore, StorageKeys

logger = get_logger(__name__)


def _decode_token(data) -> str:
    if not isinstance(data, str) or not data.strip():
        raise ValueError("Stored token is not a non-empty string")
    return data


class CredentialStore:
    """
    Single owner of the bearer token and the cached user profile.

    The token alone decides whether the visitor is authenticated. The
    profile is a display cache and is dropped whenever the token is.
    """

    def __init__(self, store: KeyValueStore):
        self._token_repo: JsonRepository[Optional[str]] = JsonRepository(
            store, StorageKeys.TOKEN, decode=_decode_token, encode=str, default=lambda: None
        )
        self._user_repo: JsonRepository[Optional[UserProfile]] = JsonRepository(
            store,
            StorageKeys.USER,
            decode=UserProfile.model_validate,
            encode=lambda user: user.model_dump(),
            default=lambda: None,
        )
        self._listeners: List[Callable[["CredentialStore"], None]] = []

        self.token: Optional[str] = self._token_repo.load()
        self.user: Optional[UserProfile] = self._user_repo.load()
        if self.token is None and self.user is not None:
            logger.info("Discarding cached profile stored without a token")
            self.user = None
            self._user_repo.clear()

    def subscribe(self, listener: Callable[["CredentialStore"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def set_token(self, token: str, user: Optional[UserProfile] = None) -> None:
        """Store a freshly acquired token; any previous profile is replaced."""
        self.token = token
        self.user = user
        self._token_repo.save(token)
        if user is not None:
            self._user_repo.save(user)
        else:
            self._user_repo.clear()
        self._notify()

    def set_user(self, user: UserProfile) -> None:
        if self.token is None:
            logger.warning("Ignoring profile update without a token")
            return
        self.user = user
        self._user_repo.save(user)
        self._notify()

    def clear(self) -> None:
        """Forget token and profile together."""
        self.token = None
        self.user = None
        self._token_repo.clear()
        self._user_repo.clear()
        self._notify()
