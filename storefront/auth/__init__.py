"""Authentication package."""
from .credentials import CredentialStore
from .session import SessionManager, SessionState

__all__ = [
    "CredentialStore",
    "SessionManager",
    "SessionState",
]
