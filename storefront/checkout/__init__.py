"""Checkout package."""
from .models import PaymentDetails, ShippingDetails
from .service import CheckoutService

__all__ = [
    "CheckoutService",
    "PaymentDetails",
    "ShippingDetails",
]
