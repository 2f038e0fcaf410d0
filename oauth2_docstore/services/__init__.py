"""Service layer exports."""

from .client_store import ClientConfig, ClientStore
from .token_store import TokenConfig, TokenStore

__all__ = [
    "ClientConfig",
    "ClientStore",
    "TokenConfig",
    "TokenStore",
]
