"""
Persistence for OAuth2 client registrations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from oauth2_docstore.clients.dynamodb import ID_FIELD, DocumentDatabase, NotFoundError
from oauth2_docstore.core.config import AppSettings, CollectionSettings
from oauth2_docstore.models.oauth import Client, ClientInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    """Collection names used by :class:`ClientStore`."""

    clients_cname: str = "oauth2_clients"

    @classmethod
    def from_settings(cls, collections: CollectionSettings) -> "ClientConfig":
        return cls(clients_cname=collections.clients)


class ClientStore:
    """Create, fetch and delete client registrations.

    Every operation runs in its own transaction, including single-document
    reads and writes.
    """

    def __init__(self, database: DocumentDatabase, config: Optional[ClientConfig] = None) -> None:
        self._db = database
        self._config = config or ClientConfig()
        if database.settings.auto_create_tables:
            database.ensure_table(self._config.clients_cname)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ClientStore":
        """Open a dedicated database connection and build a store on it."""
        return cls(
            DocumentDatabase(settings.store),
            ClientConfig.from_settings(settings.collections),
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def set(self, info: ClientInfo) -> None:
        """Store a new client; raises DuplicateKeyError if the id is taken."""
        document = {
            ID_FIELD: info.get_id(),
            "secret": info.get_secret(),
            "domain": info.get_domain(),
            "userid": info.get_user_id(),
        }
        with self._db.transaction() as txn:
            txn.insert(self._config.clients_cname, document)
        logger.debug("Stored client %s", info.get_id())

    def get_by_id(self, client_id: str) -> Client:
        """Return the client registered under ``client_id``."""
        with self._db.transaction() as txn:
            document = txn.find_one(self._config.clients_cname, client_id)
        if document is None:
            raise NotFoundError(f"No client registered with id {client_id!r}.")
        return Client(
            id=document[ID_FIELD],
            secret=document.get("secret", ""),
            domain=document.get("domain", ""),
            user_id=document.get("userid", ""),
        )

    def remove_by_id(self, client_id: str) -> None:
        """Delete a client; removing an unknown id is a no-op."""
        with self._db.transaction() as txn:
            txn.delete(self._config.clients_cname, client_id)
        logger.debug("Removed client %s", client_id)

    def close(self) -> None:
        """Close the database connection backing this store."""
        self._db.close()


__all__ = ["ClientConfig", "ClientStore"]
