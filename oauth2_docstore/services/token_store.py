"""
Persistence for authorization codes, access tokens and refresh tokens.

A grant is stored as one *basic* document holding the serialized token record
plus, for access/refresh grants, one small index row per token string that
points back at the basic document. Deletes never cascade; stale documents are
left for the expiry attribute to clean up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import uuid4

from pydantic import ValidationError

from oauth2_docstore.clients.dynamodb import (
    ID_FIELD,
    DocumentDatabase,
    NotFoundError,
    StorageError,
)
from oauth2_docstore.core.config import AppSettings, CollectionSettings
from oauth2_docstore.models.oauth import Token, TokenInfo

logger = logging.getLogger(__name__)

DATA_FIELD = "Data"
BASIC_ID_FIELD = "BasicID"
EXPIRY_FIELD = "ExpiredAt"


@dataclass(frozen=True)
class TokenConfig:
    """Collection names used by :class:`TokenStore`.

    ``txn_cname`` is reserved and currently unused.
    """

    txn_cname: str = "oauth2_txn"
    basic_cname: str = "oauth2_basic"
    access_cname: str = "oauth2_access"
    refresh_cname: str = "oauth2_refresh"

    @classmethod
    def from_settings(cls, collections: CollectionSettings) -> "TokenConfig":
        return cls(
            txn_cname=collections.txn,
            basic_cname=collections.basic,
            access_cname=collections.access,
            refresh_cname=collections.refresh,
        )


def _expires_at(created_at: Optional[datetime], expires_in: timedelta, label: str) -> datetime:
    if created_at is None:
        raise ValueError(f"Token record has no {label} creation time.")
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at + expires_in


def grant_expiries(info: TokenInfo) -> Tuple[datetime, Optional[datetime]]:
    """Return ``(access_expiry, refresh_expiry)`` for an access/refresh grant.

    The access expiry is clamped to the refresh expiry, comparing whole
    seconds only; a sub-second overshoot is kept as is.
    """
    access_expiry = _expires_at(
        info.get_access_create_at(), info.get_access_expires_in(), "access"
    )
    if not info.get_refresh():
        return access_expiry, None

    refresh_expiry = _expires_at(
        info.get_refresh_create_at(), info.get_refresh_expires_in(), "refresh"
    )
    if int(access_expiry.timestamp()) > int(refresh_expiry.timestamp()):
        access_expiry = refresh_expiry
    return access_expiry, refresh_expiry


class TokenStore:
    """Create, fetch and delete token records for an OAuth2 server."""

    def __init__(self, database: DocumentDatabase, config: Optional[TokenConfig] = None) -> None:
        self._db = database
        self._config = config or TokenConfig()
        self._prepare_collections()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "TokenStore":
        """Open a dedicated database connection and build a store on it."""
        return cls(
            DocumentDatabase(settings.store),
            TokenConfig.from_settings(settings.collections),
        )

    @property
    def config(self) -> TokenConfig:
        return self._config

    def _prepare_collections(self) -> None:
        for collection in (
            self._config.basic_cname,
            self._config.access_cname,
            self._config.refresh_cname,
        ):
            if self._db.settings.auto_create_tables:
                self._db.ensure_table(collection)
            if not self._db.ensure_expiry_index(collection, EXPIRY_FIELD):
                logger.warning(
                    "Expired documents in %s will not be cleaned up automatically",
                    self._db.table_name(collection),
                )

    def create(self, info: TokenInfo) -> None:
        """Store the records for one grant in a single transaction."""
        data = info.to_json().encode("utf-8")

        code = info.get_code()
        if code:
            expires_at = _expires_at(info.get_code_create_at(), info.get_code_expires_in(), "code")
            with self._db.transaction() as txn:
                txn.insert(
                    self._config.basic_cname,
                    {ID_FIELD: code, DATA_FIELD: data, EXPIRY_FIELD: expires_at},
                )
            logger.debug("Stored authorization code grant")
            return

        if not info.get_access():
            raise ValueError("Token record has neither a code nor an access token.")
        access_expiry, refresh_expiry = grant_expiries(info)
        basic_id = uuid4().hex
        refresh = info.get_refresh()

        with self._db.transaction() as txn:
            txn.insert(
                self._config.basic_cname,
                {
                    ID_FIELD: basic_id,
                    DATA_FIELD: data,
                    EXPIRY_FIELD: refresh_expiry or access_expiry,
                },
            )
            txn.insert(
                self._config.access_cname,
                {ID_FIELD: info.get_access(), BASIC_ID_FIELD: basic_id, EXPIRY_FIELD: access_expiry},
            )
            if refresh:
                txn.insert(
                    self._config.refresh_cname,
                    {ID_FIELD: refresh, BASIC_ID_FIELD: basic_id, EXPIRY_FIELD: refresh_expiry},
                )
        logger.debug("Stored token grant %s (refresh=%s)", basic_id, bool(refresh))

    def remove_by_code(self, code: str) -> None:
        """Delete the basic document stored under an authorization code."""
        self._remove(self._config.basic_cname, code)

    def remove_by_access(self, access: str) -> None:
        """Delete the access token index row only."""
        self._remove(self._config.access_cname, access)

    def remove_by_refresh(self, refresh: str) -> None:
        """Delete the refresh token index row only."""
        self._remove(self._config.refresh_cname, refresh)

    def get_by_code(self, code: str) -> Token:
        return self._get_data(code)

    def get_by_access(self, access: str) -> Token:
        return self._get_data(self._get_basic_id(self._config.access_cname, access))

    def get_by_refresh(self, refresh: str) -> Token:
        return self._get_data(self._get_basic_id(self._config.refresh_cname, refresh))

    def close(self) -> None:
        """Close the database connection backing this store."""
        self._db.close()

    def _remove(self, collection: str, key: str) -> None:
        with self._db.transaction() as txn:
            txn.delete(collection, key)

    def _get_basic_id(self, collection: str, token: str) -> str:
        with self._db.transaction() as txn:
            document = txn.find_one(collection, token)
        basic_id = (document or {}).get(BASIC_ID_FIELD)
        if not basic_id:
            raise NotFoundError(f"No token found in {collection}.")
        return basic_id

    def _get_data(self, basic_id: str) -> Token:
        with self._db.transaction() as txn:
            document = txn.find_one(self._config.basic_cname, basic_id)
        if document is None:
            raise NotFoundError(f"No token data found in {self._config.basic_cname}.")
        try:
            return Token.from_json(document[DATA_FIELD])
        except (KeyError, ValueError, ValidationError) as exc:
            raise StorageError(
                f"Token data {basic_id!r} in {self._config.basic_cname} is unreadable."
            ) from exc


__all__ = ["TokenConfig", "TokenStore", "grant_expiries"]
