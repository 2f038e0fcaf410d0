"""
DynamoDB-backed document database shared by the OAuth2 client and token stores.

Each collection is a table named ``<database>.<collection>`` keyed by a string
``_id`` attribute. Writes are buffered in a :class:`Transaction` and committed
with a single ``TransactWriteItems`` call; reads go through
``TransactGetItems`` so they observe committed state only.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.dynamodb.types import Binary
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from oauth2_docstore.core.config import DocumentStoreSettings

logger = logging.getLogger(__name__)

ID_FIELD = "_id"
_ID_PLACEHOLDER = {"#id": ID_FIELD}


class DocumentStoreError(Exception):
    """Base class for every error surfaced by the document store."""


class NotFoundError(DocumentStoreError):
    """Raised when a lookup matches no document."""


class DuplicateKeyError(DocumentStoreError):
    """Raised when an insert collides with an existing ``_id``."""


class StorageError(DocumentStoreError):
    """Raised on any transport, transaction or decoding fault."""


def _is_conditional_failure(exc: ClientError) -> bool:
    """Return True when a write was rejected by its ``attribute_not_exists`` guard."""
    error = exc.response.get("Error", {})
    code = error.get("Code")
    if code == "ConditionalCheckFailedException":
        return True
    if code != "TransactionCanceledException":
        return False
    reasons = exc.response.get("CancellationReasons") or []
    if reasons:
        return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)
    return "ConditionalCheckFailed" in error.get("Message", "")


def encode_value(value: Any) -> Any:
    """Convert a Python value into something the DynamoDB serializer accepts."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    """Convert a value returned by DynamoDB back into plain Python types."""
    if isinstance(value, Binary):
        return value.value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


class Transaction:
    """Buffered writes committed atomically when the transaction block exits."""

    def __init__(self, database: "DocumentDatabase") -> None:
        self._database = database
        self._items: List[Dict[str, Any]] = []

    @property
    def pending(self) -> int:
        return len(self._items)

    def insert(self, collection: str, document: Dict[str, Any]) -> None:
        """Queue an insert that fails if a document with the same ``_id`` exists."""
        if not document.get(ID_FIELD):
            raise ValueError(f"Document for {collection} must include a non-empty {ID_FIELD!r}.")
        self._items.append(
            {
                "Put": {
                    "TableName": self._database.table_name(collection),
                    "Item": encode_value(document),
                    "ConditionExpression": "attribute_not_exists(#id)",
                    "ExpressionAttributeNames": dict(_ID_PLACEHOLDER),
                }
            }
        )

    def delete(self, collection: str, key: str) -> None:
        """Queue a delete; deleting a missing document is not an error."""
        self._items.append(
            {
                "Delete": {
                    "TableName": self._database.table_name(collection),
                    "Key": {ID_FIELD: key},
                }
            }
        )

    def find_one(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Read a single document by ``_id`` inside a read transaction."""
        return self._database.transact_get(collection, key)

    def commit(self) -> None:
        if self._items:
            self._database.transact_write(self._items)
        self._items = []

    def abort(self) -> None:
        if self._items:
            logger.debug("Aborting transaction with %d pending writes", len(self._items))
        self._items = []


class DocumentDatabase:
    """Owns the DynamoDB connection and exposes collection-level operations."""

    def __init__(self, settings: DocumentStoreSettings, resource: Any = None) -> None:
        self._settings = settings
        if resource is None:
            resource = boto3.resource(
                "dynamodb",
                region_name=settings.region_name,
                endpoint_url=settings.url,
                config=Config(
                    connect_timeout=settings.connect_timeout,
                    read_timeout=settings.read_timeout,
                    retries={"total_max_attempts": settings.max_attempts},
                ),
            )
        self._resource = resource
        self._closed = False
        logger.info(
            "Connected document store database=%s region=%s endpoint=%s",
            settings.database,
            settings.region_name,
            settings.url or "default",
        )

    @property
    def settings(self) -> DocumentStoreSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def _client(self) -> Any:
        if self._closed:
            raise StorageError("Document database connection is closed.")
        return self._resource.meta.client

    def table_name(self, collection: str) -> str:
        """Return the physical table name backing ``collection``."""
        return f"{self._settings.database}.{collection}"

    def table(self, collection: str) -> Any:
        """Return the boto3 ``Table`` resource for ``collection``."""
        if self._closed:
            raise StorageError("Document database connection is closed.")
        return self._resource.Table(self.table_name(collection))

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Yield a transaction; commit on clean exit, abort on any exception."""
        txn = Transaction(self)
        try:
            yield txn
        except BaseException:
            txn.abort()
            raise
        txn.commit()

    @contextmanager
    def _translate_errors(self, action: str, target: str) -> Iterator[None]:
        try:
            yield
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise DuplicateKeyError(f"Duplicate key while running {action} on {target}.") from exc
            logger.error("%s failed on %s: %s", action, target, exc)
            raise StorageError(f"{action} failed on {target}: {exc}") from exc
        except BotoCoreError as exc:
            logger.error("%s failed on %s: %s", action, target, exc)
            raise StorageError(f"{action} failed on {target}: {exc}") from exc

    def transact_write(self, items: List[Dict[str, Any]]) -> None:
        """Apply ``items`` atomically; either every write lands or none does."""
        targets = ",".join(
            sorted({next(iter(item.values()))["TableName"] for item in items})
        )
        with self._translate_errors("TransactWriteItems", targets):
            self._client.transact_write_items(TransactItems=items)

    def transact_get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Fetch one document by ``_id``; returns None when it does not exist."""
        name = self.table_name(collection)
        with self._translate_errors("TransactGetItems", name):
            response = self._client.transact_get_items(
                TransactItems=[{"Get": {"TableName": name, "Key": {ID_FIELD: key}}}]
            )
        responses = response.get("Responses") or [{}]
        item = responses[0].get("Item")
        if not item:
            return None
        return decode_value(item)

    def ensure_expiry_index(self, collection: str, attribute: str) -> bool:
        """Enable TTL-based expiry on ``attribute``.

        Failures are logged and reported through the return value instead of
        raised, so a store can still start against a table whose TTL is
        managed elsewhere.
        """
        name = self.table_name(collection)
        try:
            self._client.update_time_to_live(
                TableName=name,
                TimeToLiveSpecification={"Enabled": True, "AttributeName": attribute},
            )
        except ClientError as exc:
            message = exc.response.get("Error", {}).get("Message", "")
            if "already enabled" in message.lower():
                return True
            logger.warning("Could not enable expiry on %s.%s: %s", name, attribute, exc)
            return False
        except BotoCoreError as exc:
            logger.warning("Could not enable expiry on %s.%s: %s", name, attribute, exc)
            return False
        logger.debug("Expiry enabled on %s.%s", name, attribute)
        return True

    def ensure_table(self, collection: str) -> None:
        """Create the table for ``collection`` if it is missing and wait for it."""
        name = self.table_name(collection)
        with self._translate_errors("CreateTable", name):
            try:
                self._client.create_table(
                    TableName=name,
                    KeySchema=[{"AttributeName": ID_FIELD, "KeyType": "HASH"}],
                    AttributeDefinitions=[{"AttributeName": ID_FIELD, "AttributeType": "S"}],
                    BillingMode="PAY_PER_REQUEST",
                )
                logger.info("Created table %s", name)
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") != "ResourceInUseException":
                    raise
            self._client.get_waiter("table_exists").wait(TableName=name)

    def close(self) -> None:
        """Release the underlying HTTP connections. Safe to call twice."""
        if self._closed:
            return
        self._resource.meta.client.close()
        self._closed = True
        logger.info("Closed document store database=%s", self._settings.database)


__all__ = [
    "ID_FIELD",
    "DocumentDatabase",
    "DocumentStoreError",
    "DuplicateKeyError",
    "NotFoundError",
    "StorageError",
    "Transaction",
    "decode_value",
    "encode_value",
]
