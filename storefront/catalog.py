"""
Catalog Service

Product listing, detail and search. Listing and search tolerate the two
shapes the backend answers with: a bare list or {"products": [...]}.
"""
from typing import Any, List
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from storefront.api.client import ApiClient, parse_model
from storefront.api.models import Product
from storefront.logging import get_logger, redact_secrets, sanitize_id_for_logging

logger = get_logger(__name__)

PRODUCTS_ENDPOINT = "/products"
PRODUCT_DETAIL_ENDPOINT = "/products/detail/{product_id}"
PRODUCT_SEARCH_ENDPOINT = "/products/search/"


def _product_rows(data: Any, source: str) -> List[Any]:
    if isinstance(data, dict):
        data = data.get("products")
    if not isinstance(data, list):
        logger.warning(f"Invalid {source} format: {type(data).__name__}")
        return []
    return data


def _parse_products(rows: List[Any]) -> List[Product]:
    """Valid rows only; one broken product does not hide the rest."""
    products = []
    for row in rows:
        try:
            products.append(Product.model_validate(row))
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed product: {redact_secrets(e.errors()[0]['msg'])}")
    return products


class CatalogService:
    """Public product pages. Calls go through the gateway like any other."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def fetch_products(self) -> List[Product]:
        data = await self.api.get(PRODUCTS_ENDPOINT)
        return _parse_products(_product_rows(data, "products"))

    async def fetch_product(self, product_id: str) -> Product:
        """
        Single product.

        Raises:
            ApiError: 404 for an unknown id, or a malformed body
        """
        path = PRODUCT_DETAIL_ENDPOINT.format(product_id=quote(str(product_id), safe=""))
        data = await self.api.get(path)
        product = parse_model(Product, data)
        logger.debug(f"Fetched product {sanitize_id_for_logging(product.id)}")
        return product

    async def search_products(self, query: str) -> List[Product]:
        query = (query or "").strip()
        if not query:
            return []
        data = await self.api.post(PRODUCT_SEARCH_ENDPOINT, json={"query": query})
        return _parse_products(_product_rows(data, "search results"))
