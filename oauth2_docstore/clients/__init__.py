"""Expose constructed client wrappers."""

from .dynamodb import (
    DocumentDatabase,
    DocumentStoreError,
    DuplicateKeyError,
    NotFoundError,
    StorageError,
    Transaction,
)

__all__ = [
    "DocumentDatabase",
    "DocumentStoreError",
    "DuplicateKeyError",
    "NotFoundError",
    "StorageError",
    "Transaction",
]
