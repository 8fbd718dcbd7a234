"""
Common Error Constants and Exceptions

Centralized error messages and the exception hierarchy shared by the
cart, session, gateway and checkout layers.
"""
from typing import Optional

# Session errors
ERROR_UNAUTHORIZED = "Unauthorized"
ERROR_SESSION_EXPIRED = "Session expired, please log in again"
ERROR_LOGIN_REQUIRED = "Please log in to continue"
ERROR_OAUTH_FAILED = "Authentication failed. Please try again."

# Cart errors
ERROR_INVALID_QUANTITY = "Quantity must be a positive integer"
ERROR_INVALID_PRICE = "Unit price must be a non-negative number"
ERROR_INVALID_PRODUCT_ID = "Product id must be a non-empty string"

# Checkout errors
ERROR_EMPTY_CART = "Your cart is empty"
ERROR_CHECKOUT_IN_PROGRESS = "Checkout is already in progress"

# Form errors
ERROR_EMAIL_REQUIRED = "Email is required"
ERROR_PASSWORD_REQUIRED = "Password is required"
ERROR_PASSWORD_TOO_SHORT = "Password must be at least 6 characters"

# Generic errors
ERROR_NETWORK = "Could not reach the server. Please check your connection."
ERROR_UNEXPECTED = "An unexpected error occurred. Please try again."


class StorefrontError(Exception):
    """Base class for all storefront client errors."""

    def __init__(self, message: str = ERROR_UNEXPECTED):
        super().__init__(message)
        self.message = message


class NetworkError(StorefrontError):
    """Request never produced a response (DNS, connect, timeout)."""

    def __init__(self, message: str = ERROR_NETWORK):
        super().__init__(message)


class ApiError(StorefrontError):
    """Backend answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail or ERROR_UNEXPECTED
        super().__init__(self.detail)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, detail={self.detail!r})"


class AuthorizationError(ApiError):
    """401 surfaced to the caller without a forced logout."""

    def __init__(self, detail: Optional[str] = None, status_code: int = 401):
        super().__init__(status_code, detail or ERROR_UNAUTHORIZED)


class SessionExpiredError(AuthorizationError):
    """401 that could not be recovered; credentials were cleared."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or ERROR_SESSION_EXPIRED)


class ValidationError(StorefrontError, ValueError):
    """Input rejected locally, before any state change or network call."""


class CartValidationError(ValidationError):
    pass


class EmptyCartError(ValidationError):
    def __init__(self, message: str = ERROR_EMPTY_CART):
        super().__init__(message)


class CheckoutValidationError(ValidationError):
    pass


class CheckoutInProgressError(StorefrontError):
    def __init__(self, message: str = ERROR_CHECKOUT_IN_PROGRESS):
        super().__init__(message)
