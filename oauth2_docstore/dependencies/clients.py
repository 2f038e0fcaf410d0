"""
Factory functions providing a process-wide database handle and the stores built on it.
"""

from functools import lru_cache

from oauth2_docstore.clients import DocumentDatabase
from oauth2_docstore.core.config import get_settings
from oauth2_docstore.services import ClientConfig, ClientStore, TokenConfig, TokenStore


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_document_database() -> DocumentDatabase:
    """Create the single database connection shared by both stores."""
    return DocumentDatabase(_settings().store)


@lru_cache()
def get_client_store() -> ClientStore:
    """Provide the client store on the shared connection."""
    return ClientStore(
        get_document_database(),
        ClientConfig.from_settings(_settings().collections),
    )


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the token store on the shared connection."""
    return TokenStore(
        get_document_database(),
        TokenConfig.from_settings(_settings().collections),
    )


__all__ = [
    "get_client_store",
    "get_document_database",
    "get_token_store",
]
