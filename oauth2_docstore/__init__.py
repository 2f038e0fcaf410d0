"""OAuth2 client and token storage on a DynamoDB document database."""

from oauth2_docstore.clients import (
    DocumentDatabase,
    DocumentStoreError,
    DuplicateKeyError,
    NotFoundError,
    StorageError,
)
from oauth2_docstore.models.oauth import Client, Token
from oauth2_docstore.services import ClientConfig, ClientStore, TokenConfig, TokenStore

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientConfig",
    "ClientStore",
    "DocumentDatabase",
    "DocumentStoreError",
    "DuplicateKeyError",
    "NotFoundError",
    "StorageError",
    "Token",
    "TokenConfig",
    "TokenStore",
]
