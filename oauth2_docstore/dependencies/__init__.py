"""Expose cached factories for the shared database and stores."""

from .clients import (
    get_client_store,
    get_document_database,
    get_token_store,
)

__all__ = [
    "get_client_store",
    "get_document_database",
    "get_token_store",
]
