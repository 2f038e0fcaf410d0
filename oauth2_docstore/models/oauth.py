"""
Domain models for OAuth2 clients and token-issuance records.

``ClientInfo`` and ``TokenInfo`` describe what the stores need from the
authorization server; ``Client`` and ``Token`` are the concrete models the
stores hand back.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_NANOSECONDS_PER_MICROSECOND = 1_000
_DURATION_FIELDS = ("CodeExpiresIn", "AccessExpiresIn", "RefreshExpiresIn")


def _duration_to_nanoseconds(value: timedelta) -> int:
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    return micros * _NANOSECONDS_PER_MICROSECOND


def _nanoseconds_to_duration(value: int) -> timedelta:
    return timedelta(microseconds=int(value) // _NANOSECONDS_PER_MICROSECOND)


class ClientInfo(Protocol):
    """Client registration as exposed by the authorization server."""

    def get_id(self) -> str: ...

    def get_secret(self) -> str: ...

    def get_domain(self) -> str: ...

    def get_user_id(self) -> str: ...


class TokenInfo(Protocol):
    """Token-issuance record as exposed by the authorization server."""

    def get_client_id(self) -> str: ...

    def get_user_id(self) -> str: ...

    def get_redirect_uri(self) -> str: ...

    def get_scope(self) -> str: ...

    def get_code(self) -> str: ...

    def get_code_challenge(self) -> str: ...

    def get_code_challenge_method(self) -> str: ...

    def get_code_create_at(self) -> Optional[datetime]: ...

    def get_code_expires_in(self) -> timedelta: ...

    def get_access(self) -> str: ...

    def get_access_create_at(self) -> Optional[datetime]: ...

    def get_access_expires_in(self) -> timedelta: ...

    def get_refresh(self) -> str: ...

    def get_refresh_create_at(self) -> Optional[datetime]: ...

    def get_refresh_expires_in(self) -> timedelta: ...

    def get_extension(self) -> Dict[str, List[str]]: ...

    def to_json(self) -> str: ...


class Client(BaseModel):
    """A registered OAuth2 client."""

    model_config = ConfigDict(frozen=True)

    id: str
    secret: str = ""
    domain: str = ""
    user_id: str = ""

    def get_id(self) -> str:
        return self.id

    def get_secret(self) -> str:
        return self.secret

    def get_domain(self) -> str:
        return self.domain

    def get_user_id(self) -> str:
        return self.user_id


class Token(BaseModel):
    """Full token-issuance record for one grant.

    Serializes to a field-tagged JSON document (``ClientID``, ``AccessCreateAt``
    and so on) with lifetimes expressed in integer nanoseconds, which keeps the
    stored blobs readable by other OAuth2 servers sharing the same tables.
    """

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field("", alias="ClientID")
    user_id: str = Field("", alias="UserID")
    redirect_uri: str = Field("", alias="RedirectURI")
    scope: str = Field("", alias="Scope")
    code: str = Field("", alias="Code")
    code_challenge: str = Field("", alias="CodeChallenge")
    code_challenge_method: str = Field("", alias="CodeChallengeMethod")
    code_create_at: Optional[datetime] = Field(None, alias="CodeCreateAt")
    code_expires_in: timedelta = Field(timedelta(0), alias="CodeExpiresIn")
    access: str = Field("", alias="Access")
    access_create_at: Optional[datetime] = Field(None, alias="AccessCreateAt")
    access_expires_in: timedelta = Field(timedelta(0), alias="AccessExpiresIn")
    refresh: str = Field("", alias="Refresh")
    refresh_create_at: Optional[datetime] = Field(None, alias="RefreshCreateAt")
    refresh_expires_in: timedelta = Field(timedelta(0), alias="RefreshExpiresIn")
    extension: Dict[str, List[str]] = Field(default_factory=dict, alias="Extension")

    @field_validator("extension", mode="before")
    @classmethod
    def _null_extension(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("code_create_at", "access_create_at", "refresh_create_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_serializer("code_expires_in", "access_expires_in", "refresh_expires_in")
    def _serialize_duration(self, value: timedelta) -> int:
        return _duration_to_nanoseconds(value)

    def to_json(self) -> str:
        """Serialize the record into its stored document form."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, payload: str | bytes) -> "Token":
        """Rebuild a record from :meth:`to_json` output."""
        data = json.loads(payload)
        for key in _DURATION_FIELDS:
            if isinstance(data.get(key), (int, float)):
                data[key] = _nanoseconds_to_duration(data[key])
        return cls.model_validate(data)

    def get_client_id(self) -> str:
        return self.client_id

    def get_user_id(self) -> str:
        return self.user_id

    def get_redirect_uri(self) -> str:
        return self.redirect_uri

    def get_scope(self) -> str:
        return self.scope

    def get_code(self) -> str:
        return self.code

    def get_code_challenge(self) -> str:
        return self.code_challenge

    def get_code_challenge_method(self) -> str:
        return self.code_challenge_method

    def get_code_create_at(self) -> Optional[datetime]:
        return self.code_create_at

    def get_code_expires_in(self) -> timedelta:
        return self.code_expires_in

    def get_access(self) -> str:
        return self.access

    def get_access_create_at(self) -> Optional[datetime]:
        return self.access_create_at

    def get_access_expires_in(self) -> timedelta:
        return self.access_expires_in

    def get_refresh(self) -> str:
        return self.refresh

    def get_refresh_create_at(self) -> Optional[datetime]:
        return self.refresh_create_at

    def get_refresh_expires_in(self) -> timedelta:
        return self.refresh_expires_in

    def get_extension(self) -> Dict[str, List[str]]:
        return self.extension


__all__ = ["Client", "ClientInfo", "Token", "TokenInfo"]
