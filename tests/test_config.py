from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from oauth2_docstore.core.config import (
    AppSettings,
    CollectionSettings,
    DocumentStoreSettings,
)
from oauth2_docstore.core.logging import configure_logging


def test_store_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("OAUTH2_STORE_URL", "OAUTH2_STORE_MAX_ATTEMPTS", "OAUTH2_STORE_AUTO_CREATE_TABLES"):
        monkeypatch.delenv(key, raising=False)

    settings = DocumentStoreSettings(OAUTH2_STORE_DATABASE="auth")

    assert settings.database == "auth"
    assert settings.url is None
    assert settings.connect_timeout == 10.0
    assert settings.read_timeout == 15.0
    assert settings.max_attempts == 1
    assert settings.auto_create_tables is False


def test_store_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH2_STORE_DATABASE", "prod-auth")
    monkeypatch.setenv("OAUTH2_STORE_URL", "http://dynamodb.local:8000")
    monkeypatch.setenv("OAUTH2_STORE_AUTO_CREATE_TABLES", "true")

    settings = DocumentStoreSettings()

    assert settings.database == "prod-auth"
    assert settings.url == "http://dynamodb.local:8000"
    assert settings.auto_create_tables is True


def test_database_name_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OAUTH2_STORE_DATABASE", raising=False)

    with pytest.raises(ValidationError):
        DocumentStoreSettings()


@pytest.mark.parametrize("name", ["", "   ", "bad name", "auth/prod"])
def test_database_name_rejects_invalid_table_prefixes(name: str) -> None:
    with pytest.raises(ValidationError):
        DocumentStoreSettings(OAUTH2_STORE_DATABASE=name)


def test_max_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        DocumentStoreSettings(OAUTH2_STORE_DATABASE="auth", OAUTH2_STORE_MAX_ATTEMPTS=0)


def test_collection_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH2_ACCESS_COLLECTION", "access_tokens")

    collections = CollectionSettings()

    assert collections.clients == "oauth2_clients"
    assert collections.txn == "oauth2_txn"
    assert collections.basic == "oauth2_basic"
    assert collections.access == "access_tokens"
    assert collections.refresh == "oauth2_refresh"


def test_app_settings_nest_groups(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH2_STORE_DATABASE", "auth")
    monkeypatch.setenv("APP_LOG_LEVEL", "DEBUG")

    settings = AppSettings()

    assert settings.log_level == "DEBUG"
    assert settings.store.database == "auth"
    assert settings.collections.clients == "oauth2_clients"


def test_configure_logging_quiets_aws_sdk() -> None:
    configure_logging("debug")

    assert logging.getLogger("botocore").level == logging.WARNING
    assert logging.getLogger("boto3").level == logging.WARNING
