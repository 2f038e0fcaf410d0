"""Pytest configuration shared across the suite."""

from __future__ import annotations

import copy
from decimal import Decimal
from types import SimpleNamespace
from typing import Any

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from boto3.dynamodb.types import Binary
from botocore.exceptions import ClientError

from oauth2_docstore.clients.dynamodb import DocumentDatabase
from oauth2_docstore.core.config import DocumentStoreSettings


def _as_stored(value: Any) -> Any:
    """Mimic the types the DynamoDB resource layer hands back."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, (bytes, bytearray)):
        return Binary(bytes(value))
    if isinstance(value, dict):
        return {key: _as_stored(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_as_stored(item) for item in value]
    return value


def client_error(code: str, message: str = "", operation: str = "Operation", **extra: Any) -> ClientError:
    response: dict[str, Any] = {"Error": {"Code": code, "Message": message}}
    response.update(extra)
    return ClientError(response, operation)


class FakeWaiter:
    def __init__(self, client: "FakeDynamoDBClient") -> None:
        self._client = client

    def wait(self, *, TableName: str) -> None:
        assert TableName in self._client.tables


class FakeDynamoDBClient:
    """In-memory stand-in for the low-level client behind a DynamoDB resource."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.ttl: dict[str, str] = {}
        self.calls: list[str] = []
        self.fail_on: dict[str, Exception] = {}
        self.closed = False

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        exc = self.fail_on.get(operation)
        if exc is not None:
            raise exc

    def rows(self, table: str) -> dict[str, dict[str, Any]]:
        return self.tables.get(table, {})

    def transact_write_items(self, *, TransactItems: list[dict[str, Any]]) -> dict:
        self._record("TransactWriteItems")
        staged = copy.deepcopy(self.tables)
        reasons = []
        cancelled = False
        for item in TransactItems:
            if "Put" in item:
                put = item["Put"]
                rows = staged.setdefault(put["TableName"], {})
                key = put["Item"]["_id"]
                if key in rows:
                    cancelled = True
                    reasons.append({"Code": "ConditionalCheckFailed"})
                    continue
                rows[key] = _as_stored(put["Item"])
            else:
                delete = item["Delete"]
                staged.setdefault(delete["TableName"], {}).pop(delete["Key"]["_id"], None)
            reasons.append({"Code": "None"})
        if cancelled:
            raise client_error(
                "TransactionCanceledException",
                "Transaction cancelled, please refer cancellation reasons for specific reasons",
                operation="TransactWriteItems",
                CancellationReasons=reasons,
            )
        self.tables = staged
        return {}

    def transact_get_items(self, *, TransactItems: list[dict[str, Any]]) -> dict:
        self._record("TransactGetItems")
        responses = []
        for item in TransactItems:
            get = item["Get"]
            row = self.rows(get["TableName"]).get(get["Key"]["_id"])
            responses.append({"Item": copy.deepcopy(row)} if row is not None else {})
        return {"Responses": responses}

    def update_time_to_live(self, *, TableName: str, TimeToLiveSpecification: dict) -> dict:
        self._record("UpdateTimeToLive")
        if TableName in self.ttl:
            raise client_error(
                "ValidationException",
                "TimeToLive is already enabled",
                operation="UpdateTimeToLive",
            )
        self.ttl[TableName] = TimeToLiveSpecification["AttributeName"]
        return {"TimeToLiveSpecification": TimeToLiveSpecification}

    def create_table(self, *, TableName: str, **kwargs: Any) -> dict:
        self._record("CreateTable")
        if TableName in self.tables:
            raise client_error("ResourceInUseException", "Table already exists", "CreateTable")
        self.tables[TableName] = {}
        return {"TableDescription": {"TableName": TableName, **kwargs}}

    def get_waiter(self, name: str) -> FakeWaiter:
        assert name == "table_exists"
        return FakeWaiter(self)

    def close(self) -> None:
        self.closed = True


class FakeDynamoDBResource:
    def __init__(self) -> None:
        self.meta = SimpleNamespace(client=FakeDynamoDBClient())

    def Table(self, name: str) -> SimpleNamespace:  # noqa: N802 - mirrors boto3
        return SimpleNamespace(name=name)


@pytest.fixture
def store_settings() -> DocumentStoreSettings:
    return DocumentStoreSettings(OAUTH2_STORE_DATABASE="testdb")


@pytest.fixture
def dynamo_resource() -> FakeDynamoDBResource:
    return FakeDynamoDBResource()


@pytest.fixture
def dynamo(dynamo_resource: FakeDynamoDBResource) -> FakeDynamoDBClient:
    return dynamo_resource.meta.client


@pytest.fixture
def database(
    store_settings: DocumentStoreSettings, dynamo_resource: FakeDynamoDBResource
) -> DocumentDatabase:
    return DocumentDatabase(store_settings, resource=dynamo_resource)
