"""
Backend API Pydantic Models

Wire shapes for the endpoints the client consumes.
"""
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from storefront.cart.models import CartItem
from storefront.services.money import parse_price


class UserProfile(BaseModel):
    """Cached profile record. Display data only, never an authorization source."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "ID", "user_id"))
    email: str
    name: str = ""
    picture: Optional[str] = None
    google_id: Optional[str] = None
    is_admin: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # Backend sends numeric ids
        return str(value)


# ==================== AUTH MODELS ====================

class AuthResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str
    user: Optional[UserProfile] = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""


# ==================== ORDER MODELS ====================

class OrderConfirmation(BaseModel):
    """Body of a 2xx POST /orders. The id is informational; the 2xx status is what counts."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    order_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("orderId", "order_id", "id")
    )

    @field_validator("order_id", mode="before")
    @classmethod
    def _coerce_order_id(cls, value: Any) -> Optional[str]:
        return None if value in (None, "") else str(value)


class OrderSummary(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "ID", "order_id"))
    status: str = ""
    total: str = "0"
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_at", "CreatedAt")
    )
    items: List[dict] = Field(default_factory=list)

    @field_validator("id", "total", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return str(value)


# ==================== CATALOG MODELS ====================

class Product(BaseModel):
    """Catalog entry as served by /products."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "ID", "product_id"))
    name: str
    price: Decimal
    description: str = ""
    image: str = Field(default="", validation_alias=AliasChoices("image", "image_url", "imageUrl"))
    stock: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal:
        price = parse_price(value)
        if price < 0:
            raise ValueError("price must not be negative")
        return price

    @field_validator("description", "image", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def in_stock(self) -> bool:
        # No stock figure means the backend does not track it
        return self.stock is None or self.stock > 0

    def to_cart_item(self) -> CartItem:
        return CartItem(product_id=self.id, name=self.name, unit_price=self.price, image=self.image)
