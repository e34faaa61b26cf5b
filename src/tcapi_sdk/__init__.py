from tcapi_sdk.canonical import build_canonical_request, serialize_payload
from tcapi_sdk.client import (
    AsyncTencentCloudClient,
    TencentCloudClient,
    build_request,
    sign_request,
)
from tcapi_sdk.crypto import (
    HexBuffer,
    derive_signing_key,
    hmac_sha256,
    sha256_hex,
    utc_date,
    verify_signature,
)
from tcapi_sdk.errors import (
    InvalidHeaderValueError,
    InvalidTimestampError,
    KeyMaterialError,
    SerializationError,
    SigningError,
)
from tcapi_sdk.observability import configure_logging
from tcapi_sdk.types import (
    Access,
    Action,
    ActionDescriptor,
    Service,
    SignedRequest,
    SigningResult,
    Style,
)

__all__ = [
    "serialize_payload",
    "build_canonical_request",
    "sha256_hex",
    "hmac_sha256",
    "HexBuffer",
    "utc_date",
    "derive_signing_key",
    "verify_signature",
    "sign_request",
    "build_request",
    "TencentCloudClient",
    "AsyncTencentCloudClient",
    "Access",
    "Action",
    "ActionDescriptor",
    "Service",
    "SignedRequest",
    "SigningResult",
    "Style",
    "SigningError",
    "InvalidHeaderValueError",
    "InvalidTimestampError",
    "KeyMaterialError",
    "SerializationError",
    "configure_logging",
]
