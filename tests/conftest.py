"""Pytest configuration and fixtures"""
import asyncio
import json
import os
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

# Quiet INFO cart/session lines during test runs
os.environ.setdefault("LOG_LEVEL", "WARNING")

from storefront.api.client import ApiClient
from storefront.api.models import UserProfile
from storefront.auth.credentials import CredentialStore
from storefront.auth.session import SessionManager
from storefront.cart import CartItem, CartManager, cart_repository
from storefront.config import Settings
from storefront.navigation import Navigator
from storefront.storage import MemoryStore, StorageKeys

API_URL = "http://backend.test/api"
API_PREFIX = "/api"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], Any]]


def json_response(status_code: int, body: Any = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status_code)
    return httpx.Response(status_code, json=body)


class FakeBackend:
    """
    Scripted backend behind httpx.MockTransport.

    Replies queued with on() are consumed in order; the last one repeats.
    Every request is recorded so tests can count calls per route.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []
        self.counts: Dict[Tuple[str, str], int] = defaultdict(int)
        self.delay = 0.0

    def on(self, method: str, path: str, *replies: Reply) -> "FakeBackend":
        self.routes[(method.upper(), path)] = list(replies)
        return self

    def count(self, method: str, path: str) -> int:
        return self.counts[(method.upper(), path)]

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method.upper() and self._path(request) == path:
                return request
        raise AssertionError(f"No {method} {path} request was made")

    def last_json(self, method: str, path: str) -> Any:
        return json.loads(self.last(method, path).content)

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path

    async def handler(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, self._path(request))
        self.requests.append(request)
        self.counts[key] += 1

        # Yield so concurrent callers can pile up while a request is in flight
        await asyncio.sleep(self.delay)

        replies = self.routes.get(key)
        if not replies:
            return json_response(404, {"error": f"no route for {key}"})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]

        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            result = reply(request)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return reply

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings(tmp_path):
    return Settings(api_url=API_URL, state_dir=tmp_path)


@pytest.fixture
def session_store():
    """Short-lived store (cart)."""
    return MemoryStore()


@pytest.fixture
def durable_store():
    """Durable store (token, cached profile)."""
    return MemoryStore()


@pytest.fixture
def navigator():
    return Navigator("/products")


@pytest.fixture
def sample_user():
    """Sample profile as the backend returns it"""
    return {
        "ID": 7,
        "email": "anna@example.com",
        "name": "Anna",
        "picture": None,
        "google_id": "",
        "CreatedAt": "2025-01-01T00:00:00Z",
    }


@pytest.fixture
def user_profile(sample_user):
    return UserProfile.model_validate(sample_user)


@pytest.fixture
def logged_in_store(durable_store, user_profile):
    """Durable store holding a token and a cached profile."""
    durable_store.set(StorageKeys.TOKEN, json.dumps("tok-123"))
    durable_store.set(StorageKeys.USER, json.dumps(user_profile.model_dump()))
    return durable_store


@pytest.fixture
def token_only_store():
    """Durable store holding a token but no profile yet."""
    store = MemoryStore()
    store.set(StorageKeys.TOKEN, json.dumps("tok-123"))
    return store


@pytest.fixture
def make_client(settings, navigator, backend):
    def factory(store) -> ApiClient:
        return ApiClient(settings, CredentialStore(store), navigator, transport=backend.transport)
    return factory


@pytest.fixture
def make_session(make_client, navigator):
    def factory(store) -> SessionManager:
        api = make_client(store)
        return SessionManager(api, api.credentials, navigator)
    return factory


@pytest.fixture
def cart_manager(session_store):
    return CartManager(cart_repository(session_store))


@pytest.fixture
def ring():
    return CartItem(product_id="ring-1", name="Solitaire Ring", unit_price="1299.00", image="/img/ring-1.jpg")


@pytest.fixture
def earrings():
    return CartItem(product_id="ear-2", name="Halo Earrings", unit_price="450.50", image="/img/ear-2.jpg")


@pytest.fixture
def shipping():
    return {
        "full_name": "Anna Nguyen",
        "address_line1": "12 Le Loi",
        "city": "Ho Chi Minh City",
        "postal_code": "700000",
        "country": "VN",
        "phone": "+84 90 000 0000",
    }


@pytest.fixture
def payment():
    return {"provider": "stripe", "payment_method_token": "pm_card_visa"}
