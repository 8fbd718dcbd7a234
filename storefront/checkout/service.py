"""Checkout orchestration: cart snapshot + shipping + payment token -> order."""
from decimal import Decimal
from typing import Any, Dict, Mapping, Type, TypeVar, Union

from pydantic import BaseModel

from storefront.api.client import ApiClient
from storefront.api.models import OrderConfirmation
from storefront.cart import Cart, CartManager
from storefront.errors import (
    ApiError,
    CheckoutInProgressError,
    CheckoutValidationError,
    EmptyCartError,
    StorefrontError,
)
from storefront.logging import get_logger, redact_secrets, sanitize_id_for_logging
from storefront.services.money import round_money

from .models import PaymentDetails, ShippingDetails

logger = get_logger(__name__)

ORDERS_ENDPOINT = "/orders"

DetailsT = TypeVar("DetailsT", bound=BaseModel)


def _coerce(model: Type[DetailsT], value: Union[DetailsT, Mapping[str, Any]]) -> DetailsT:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValueError as e:
        raise CheckoutValidationError(f"Invalid {model.__name__}: {e}")


def _read_confirmation(data: Any) -> OrderConfirmation:
    if not isinstance(data, dict):
        data = {}
    confirmation = OrderConfirmation.model_validate(data)
    if confirmation.order_id is None:
        logger.warning("Order accepted without an order id in the response")
    return confirmation


class CheckoutService:
    """
    Submits the cart as an order.

    The cart is read-only here until the backend accepts the order; only
    then are the submitted lines removed. A failed submission leaves it
    untouched.
    """

    def __init__(self, cart: CartManager, api: ApiClient):
        self.cart = cart
        self.api = api
        self._submitting = False

    @property
    def submitting(self) -> bool:
        return self._submitting

    def cart_snapshot(self) -> Cart:
        return self.cart.snapshot()

    @property
    def total(self) -> Decimal:
        return self.cart.total

    def build_order(self, cart: Cart, shipping: ShippingDetails, payment: PaymentDetails) -> Dict[str, Any]:
        """Order payload for POST /orders."""
        return {
            "items": [item.to_dict() for item in cart.items],
            "total": str(round_money(cart.total)),
            "currency": self.cart.currency,
            "shipping": shipping.model_dump(exclude_none=True),
            "payment": {
                "provider": payment.provider,
                "payment_method_tokens": payment.tokens,
            },
        }

    async def submit(
        self,
        shipping: Union[ShippingDetails, Mapping[str, Any]],
        payment: Union[PaymentDetails, Mapping[str, Any]],
    ) -> OrderConfirmation:
        """
        Place the order.

        Raises:
            EmptyCartError / CheckoutValidationError: before any network call
            CheckoutInProgressError: another submission is still running
            StorefrontError: backend or network failure (cart kept)

        Any 2xx answer means the order exists, so the submitted lines leave
        the cart even when the body carries no order id. Lines added while
        the request was in flight were not ordered and stay.
        """
        if self._submitting:
            raise CheckoutInProgressError()

        cart = self.cart.snapshot()
        if cart.is_empty:
            raise EmptyCartError()
        shipping = _coerce(ShippingDetails, shipping)
        payment = _coerce(PaymentDetails, payment)

        self._submitting = True
        try:
            data = await self.api.post(ORDERS_ENDPOINT, json=self.build_order(cart, shipping, payment))
        except ApiError as e:
            if not 200 <= e.status_code < 300:
                logger.warning(f"Checkout failed, cart kept: {redact_secrets(e)}")
                raise
            # Accepted, but the body was not JSON
            data = None
        except StorefrontError as e:
            logger.warning(f"Checkout failed, cart kept: {redact_secrets(e)}")
            raise
        finally:
            self._submitting = False

        self.cart.discard(cart)
        confirmation = _read_confirmation(data)
        logger.info(f"Order {sanitize_id_for_logging(confirmation.order_id)} placed")
        return confirmation
