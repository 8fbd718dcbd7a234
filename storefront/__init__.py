"""V Diamond storefront client core: cart, session, request gateway and checkout."""

__version__ = "0.1.0"
