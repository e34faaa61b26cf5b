import logging
import time
from time import perf_counter

import httpx

from tcapi_sdk.canonical import (
    SIGNED_HEADERS,
    build_canonical_request,
    request_line,
    serialize_payload,
)
from tcapi_sdk.config import Settings, settings
from tcapi_sdk.crypto import (
    ALGORITHM,
    HexBuffer,
    build_string_to_sign,
    compute_signature,
    credential_scope,
    derive_signing_key,
    utc_date,
)
from tcapi_sdk.types import Access, Action, SignedRequest, SigningResult

logger = logging.getLogger("tcapi.signing")
http_logger = logging.getLogger("tcapi.client")


def sign_request(action: Action, timestamp: int, access: Access) -> SigningResult:
    """Run the TC3-HMAC-SHA256 pipeline and return every intermediate value.

    All inputs are validated here, so a failure never leaves a half-built
    request behind.
    """
    service = action.service
    method, uri, query, content_type = request_line(action.descriptor.style)

    date = utc_date(timestamp)
    body = serialize_payload(action.payload)
    signing_key = derive_signing_key(access.secret_key, date, service.name)

    hex_buffer = HexBuffer()
    canonical_request = build_canonical_request(
        method=method,
        uri=uri,
        query=query,
        content_type=content_type,
        host=service.host,
        action=action.name,
        body=body,
        hex_buffer=hex_buffer,
    )
    scope = credential_scope(date, service.name)
    string_to_sign = build_string_to_sign(
        timestamp=timestamp,
        scope=scope,
        canonical_request=canonical_request,
        hex_buffer=hex_buffer,
    )
    signature = compute_signature(signing_key, string_to_sign, hex_buffer)
    authorization = (
        f"{ALGORITHM} Credential={access.secret_id}/{scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )

    logger.debug(
        "request_signed",
        extra={
            "event_name": "request_signed",
            "action": action.name,
            "service": service.name,
            "host": service.host,
            "request_timestamp": timestamp,
            "credential_scope": scope,
        },
    )

    return SigningResult(
        body=body,
        date=date,
        credential_scope=scope,
        canonical_request=canonical_request,
        string_to_sign=string_to_sign,
        signature=signature,
        authorization=authorization,
    )


def _assemble_headers(
    action: Action, timestamp: int, authorization: str, content_type: str
) -> tuple[tuple[str, str], ...]:
    service = action.service
    known = [
        ("Authorization", authorization),
        ("Content-Type", content_type),
        ("Host", service.host),
    ]
    custom = [
        ("X-TC-Action", action.name),
        ("X-TC-Timestamp", str(timestamp)),
        ("X-TC-Version", service.version),
    ]

    headers: list[tuple[str, str]] = []
    headers.extend(known)
    headers.extend(custom)
    return tuple(headers)


def build_request(action: Action, timestamp: int, access: Access) -> SignedRequest:
    signed = sign_request(action, timestamp, access)
    method, uri, _, content_type = request_line(action.descriptor.style)
    return SignedRequest(
        method=method,
        uri=uri,
        headers=_assemble_headers(action, timestamp, signed.authorization, content_type),
        body=signed.body,
    )


def _now() -> int:
    return int(time.time())


def _log_exchange(
    signed: SignedRequest,
    url: str,
    start: float,
    status: int | None,
    *,
    failed: bool = False,
) -> None:
    http_logger.info(
        "tcapi_request",
        extra={
            "event_name": "tcapi_request",
            "action": signed.header("X-TC-Action"),
            "method": signed.method,
            "url": url,
            "status": status,
            "latency_ms": round((perf_counter() - start) * 1000, 2),
        },
        exc_info=failed,
    )


class TencentCloudClient:
    def __init__(
        self,
        *,
        access: Access,
        timeout: float = 10.0,
        scheme: str = "https",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._access = access
        self._timeout = timeout
        self._scheme = scheme
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> "TencentCloudClient":
        config = config or settings
        return cls(
            access=config.access(),
            timeout=config.timeout,
            scheme=config.scheme,
            transport=transport,
        )

    def send(self, action: Action, timestamp: int | None = None) -> httpx.Response:
        signed = build_request(action, _now() if timestamp is None else timestamp, self._access)
        url = signed.url(self._scheme)
        start = perf_counter()
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = client.post(url, headers=list(signed.headers), content=signed.body)
            except httpx.RequestError:
                _log_exchange(signed, url, start, None, failed=True)
                raise
            _log_exchange(signed, url, start, response.status_code)
            response.raise_for_status()
            return response


class AsyncTencentCloudClient:
    def __init__(
        self,
        *,
        access: Access,
        timeout: float = 10.0,
        scheme: str = "https",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access = access
        self._timeout = timeout
        self._scheme = scheme
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncTencentCloudClient":
        config = config or settings
        return cls(
            access=config.access(),
            timeout=config.timeout,
            scheme=config.scheme,
            transport=transport,
        )

    async def send(self, action: Action, timestamp: int | None = None) -> httpx.Response:
        signed = build_request(action, _now() if timestamp is None else timestamp, self._access)
        url = signed.url(self._scheme)
        start = perf_counter()
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    url, headers=list(signed.headers), content=signed.body
                )
            except httpx.RequestError:
                _log_exchange(signed, url, start, None, failed=True)
                raise
            _log_exchange(signed, url, start, response.status_code)
            response.raise_for_status()
            return response
