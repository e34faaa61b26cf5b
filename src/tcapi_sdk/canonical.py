import json
import string
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from tcapi_sdk.crypto import HexBuffer, sha256
from tcapi_sdk.errors import SerializationError
from tcapi_sdk.types import Payload, Style

SIGNED_HEADERS = "content-type;host;x-tc-action"

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_REQUEST_LINES: dict[Style, tuple[str, str, str, str]] = {
    # style: (method, uri, query string, content type)
    Style.POST_JSON: ("POST", "/", "", "application/json; charset=utf-8"),
}


def request_line(style: Style) -> tuple[str, str, str, str]:
    try:
        return _REQUEST_LINES[style]
    except KeyError:
        raise NotImplementedError(f"request style {style!r} is not supported") from None


def _payload_value(payload: Payload) -> Any:
    if isinstance(payload, BaseModel):
        try:
            return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        except PydanticSerializationError as exc:
            raise SerializationError(f"cannot serialize {type(payload).__name__}") from exc
    return payload


def serialize_payload(payload: Payload) -> bytes:
    value = _payload_value(payload)
    if not isinstance(value, Mapping):
        raise SerializationError(
            f"payload must serialize to a JSON object, got {type(value).__name__}"
        )
    try:
        text = json.dumps(
            dict(value),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"payload is not JSON serializable: {exc}") from exc
    return text.encode("utf-8")


def canonical_headers(*, content_type: str, host: str, action: str) -> str:
    lowered = action.translate(_ASCII_LOWER)
    return f"content-type:{content_type}\nhost:{host}\nx-tc-action:{lowered}\n"


def build_canonical_request(
    *,
    method: str,
    uri: str,
    query: str,
    content_type: str,
    host: str,
    action: str,
    body: bytes,
    hex_buffer: HexBuffer | None = None,
) -> str:
    buf = hex_buffer or HexBuffer()
    return "\n".join(
        [
            method,
            uri,
            query,
            canonical_headers(content_type=content_type, host=host, action=action),
            SIGNED_HEADERS,
            buf.hex_str(sha256(body)),
        ]
    )
