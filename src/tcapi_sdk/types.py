import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

import httpx
from pydantic import BaseModel

from tcapi_sdk.errors import InvalidHeaderValueError, KeyMaterialError, SigningError

Payload: TypeAlias = Mapping[str, Any] | BaseModel

# Visible ASCII, space and tab. Anything else (CR, LF, non-ASCII) would make
# an invalid or injected header.
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")


def _check_header_value(
    label: str,
    value: str,
    error: type[SigningError] = InvalidHeaderValueError,
) -> None:
    if not value:
        raise error(f"{label} must be non-empty")
    if not _HEADER_VALUE_RE.fullmatch(value):
        raise error(f"{label} must be visible ASCII, got {value!r}")


class Style(str, Enum):
    """Request styles understood by the signer.

    Only JSON bodies sent with POST are implemented. GET with a query string
    and form-encoded POST would be new members here, each with its own
    request line in ``canonical.request_line``.
    """

    POST_JSON = "post_json"


@dataclass(frozen=True)
class Access:
    secret_id: str
    secret_key: str | bytes = field(repr=False)

    def __post_init__(self) -> None:
        _check_header_value("secret_id", self.secret_id, KeyMaterialError)
        if not self.secret_key:
            raise KeyMaterialError("secret_key must be non-empty")


@dataclass(frozen=True)
class Service:
    name: str
    host: str
    version: str

    def __post_init__(self) -> None:
        _check_header_value("service name", self.name)
        _check_header_value("service host", self.host)
        _check_header_value("service version", self.version)


@dataclass(frozen=True)
class ActionDescriptor:
    service: Service
    name: str
    style: Style = Style.POST_JSON

    def __post_init__(self) -> None:
        _check_header_value("action name", self.name)
        # Raises ValueError for anything that is not a known style.
        object.__setattr__(self, "style", Style(self.style))

    def bind(self, payload: Payload) -> "Action":
        return Action(descriptor=self, payload=payload)


@dataclass(frozen=True)
class Action:
    descriptor: ActionDescriptor
    payload: Payload

    @property
    def service(self) -> Service:
        return self.descriptor.service

    @property
    def name(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class SignedRequest:
    method: str
    uri: str
    headers: tuple[tuple[str, str], ...]
    body: bytes

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def url(self, scheme: str = "https") -> str:
        host = self.header("Host")
        if host is None:
            raise ValueError("signed request has no Host header")
        return f"{scheme}://{host}{self.uri}"

    def to_httpx(self, scheme: str = "https") -> httpx.Request:
        return httpx.Request(
            self.method,
            self.url(scheme),
            headers=list(self.headers),
            content=self.body,
        )


@dataclass(frozen=True)
class SigningResult:
    body: bytes
    date: str
    credential_scope: str
    canonical_request: str
    string_to_sign: str
    signature: str
    authorization: str
