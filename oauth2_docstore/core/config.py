"""
Configuration models and helpers for the OAuth2 document store.

Centralizes settings management so the client store, the token store and the
operational scripts share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class DocumentStoreSettings(BaseSettings):
    """Connection settings for the DynamoDB-backed document store."""

    url: Optional[str] = Field(
        None,
        validation_alias="OAUTH2_STORE_URL",
        description="Optional endpoint URL, e.g. a DynamoDB Local instance.",
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    database: str = Field(
        ...,
        validation_alias="OAUTH2_STORE_DATABASE",
        description="Database name, used as the prefix of every table name.",
    )
    connect_timeout: float = Field(10.0, validation_alias="OAUTH2_STORE_CONNECT_TIMEOUT")
    read_timeout: float = Field(15.0, validation_alias="OAUTH2_STORE_READ_TIMEOUT")
    max_attempts: int = Field(
        1,
        validation_alias="OAUTH2_STORE_MAX_ATTEMPTS",
        description="Total attempts per request, including the first one.",
    )
    auto_create_tables: bool = Field(
        False,
        validation_alias="OAUTH2_STORE_AUTO_CREATE_TABLES",
        description="Create missing tables on startup (local development only).",
    )

    @field_validator("database")
    @classmethod
    def _validate_database(cls, value: str) -> str:
        """Table names only accept letters, digits, '_', '-' and '.'."""
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Database name must not be empty.")
        allowed = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-.")
        if not set(cleaned) <= allowed:
            raise ValueError(f"Invalid characters in database name {cleaned!r}.")
        return cleaned

    @field_validator("max_attempts")
    @classmethod
    def _validate_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("At least one attempt is required.")
        return value


class CollectionSettings(BaseSettings):
    """Collection (table) names used by the client and token stores."""

    clients: str = Field("oauth2_clients", validation_alias="OAUTH2_CLIENTS_COLLECTION")
    txn: str = Field("oauth2_txn", validation_alias="OAUTH2_TXN_COLLECTION")
    basic: str = Field("oauth2_basic", validation_alias="OAUTH2_BASIC_COLLECTION")
    access: str = Field("oauth2_access", validation_alias="OAUTH2_ACCESS_COLLECTION")
    refresh: str = Field("oauth2_refresh", validation_alias="OAUTH2_REFRESH_COLLECTION")


class AppSettings(BaseSettings):
    """Root settings object for the document store."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    store: DocumentStoreSettings = Field(default_factory=DocumentStoreSettings)
    collections: CollectionSettings = Field(default_factory=CollectionSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "CollectionSettings",
    "DocumentStoreSettings",
    "get_settings",
]
