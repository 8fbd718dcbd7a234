"""Backend API access: request gateway and wire models."""
from .client import ApiClient, PendingRequest, ME_ENDPOINT
from .models import (
    AuthResponse,
    MessageResponse,
    OrderConfirmation,
    OrderSummary,
    Product,
    UserProfile,
)

__all__ = [
    "ApiClient",
    "PendingRequest",
    "ME_ENDPOINT",
    "AuthResponse",
    "MessageResponse",
    "OrderConfirmation",
    "OrderSummary",
    "Product",
    "UserProfile",
]
