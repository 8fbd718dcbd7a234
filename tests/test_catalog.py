"""Tests for CatalogService and the Product model"""
from decimal import Decimal

import httpx
import pytest

from storefront.api.models import Product
from storefront.catalog import CatalogService
from storefront.errors import ApiError, NetworkError

from conftest import json_response

RING = {"ID": 1, "name": "Solitaire Ring", "price": 1299.0, "image_url": "/img/ring.jpg", "stock": 3}
EARRINGS = {"id": "ear-2", "name": "Pearl Earrings", "price": "450.50", "description": "Freshwater"}


@pytest.fixture
def catalog(make_client, durable_store):
    return CatalogService(make_client(durable_store))


class TestProduct:
    """Product wire model."""

    def test_backend_field_names(self):
        """ID and image_url from the backend map onto id and image."""
        product = Product.model_validate(RING)
        assert product.id == "1"
        assert product.price == Decimal("1299.0")
        assert product.image == "/img/ring.jpg"
        assert product.in_stock

    def test_to_cart_item(self):
        """A product converts straight into a cart line."""
        item = Product.model_validate(EARRINGS).to_cart_item()
        assert item.product_id == "ear-2"
        assert item.unit_price == Decimal("450.50")
        assert item.quantity == 1

    def test_out_of_stock(self):
        """Zero stock is reported; a missing figure is not."""
        assert not Product.model_validate({**RING, "stock": 0}).in_stock
        assert Product.model_validate(EARRINGS).in_stock

    @pytest.mark.parametrize("price", [None, "abc", -5, True])
    def test_rejects_bad_price(self, price):
        """Prices must be non-negative numbers."""
        with pytest.raises(ValueError):
            Product.model_validate({**EARRINGS, "price": price})


class TestFetchProducts:
    """Product listing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[RING, EARRINGS], {"products": [RING, EARRINGS]}])
    async def test_list_formats(self, backend, catalog, body):
        """A bare list and a {"products": [...]} wrapper both parse."""
        backend.on("GET", "/products", json_response(200, body))

        products = await catalog.fetch_products()
        assert [product.id for product in products] == ["1", "ear-2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"data": []}, {"products": "none"}, "oops", None])
    async def test_unexpected_format_is_empty(self, backend, catalog, body):
        """Any other shape yields an empty catalog."""
        backend.on("GET", "/products", json_response(200, body))
        assert await catalog.fetch_products() == []

    @pytest.mark.asyncio
    async def test_malformed_rows_skipped(self, backend, catalog):
        """Broken rows are dropped, valid ones kept."""
        backend.on("GET", "/products", json_response(200, [RING, {"name": "no id"}, "x"]))

        products = await catalog.fetch_products()
        assert [product.id for product in products] == ["1"]

    @pytest.mark.asyncio
    async def test_no_token_needed(self, backend, catalog):
        """Anonymous visitors browse without an Authorization header."""
        backend.on("GET", "/products", json_response(200, []))
        await catalog.fetch_products()
        assert "Authorization" not in backend.last("GET", "/products").headers

    @pytest.mark.asyncio
    async def test_server_error_propagates(self, backend, catalog):
        """Backend failures are not mistaken for an empty catalog."""
        backend.on("GET", "/products", json_response(503, {"error": "maintenance"}))
        with pytest.raises(ApiError):
            await catalog.fetch_products()


class TestFetchProduct:
    """Product detail."""

    @pytest.mark.asyncio
    async def test_detail(self, backend, catalog):
        """The id goes into the detail path."""
        backend.on("GET", "/products/detail/1", json_response(200, RING))

        product = await catalog.fetch_product("1")
        assert product.name == "Solitaire Ring"
        assert backend.count("GET", "/products/detail/1") == 1

    @pytest.mark.asyncio
    async def test_unknown_id(self, backend, catalog):
        """A 404 surfaces as ApiError."""
        backend.on("GET", "/products/detail/99", json_response(404, {"error": "Product not found"}))

        with pytest.raises(ApiError) as exc_info:
            await catalog.fetch_product(99)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_detail(self, backend, catalog):
        """A detail body that is not a product raises ApiError."""
        backend.on("GET", "/products/detail/1", json_response(200, {"name": "no price"}))
        with pytest.raises(ApiError):
            await catalog.fetch_product("1")


class TestSearchProducts:
    """Product search."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[EARRINGS], {"products": [EARRINGS]}])
    async def test_search(self, backend, catalog, body):
        """The query is posted and both result shapes parse."""
        backend.on("POST", "/products/search/", json_response(200, body))

        results = await catalog.search_products("  pearl ")
        assert [product.id for product in results] == ["ear-2"]
        assert backend.last_json("POST", "/products/search/") == {"query": "pearl"}

    @pytest.mark.asyncio
    async def test_unexpected_format_is_empty(self, backend, catalog):
        """Any other shape yields no results."""
        backend.on("POST", "/products/search/", json_response(200, {"hits": 1}))
        assert await catalog.search_products("ring") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_blank_query_skips_backend(self, backend, catalog, query):
        """Blank queries return nothing without a request."""
        assert await catalog.search_products(query) == []
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, backend, catalog):
        """Transport failures raise NetworkError."""
        backend.on("POST", "/products/search/", httpx.ConnectError("offline"))
        with pytest.raises(NetworkError):
            await catalog.search_products("ring")
