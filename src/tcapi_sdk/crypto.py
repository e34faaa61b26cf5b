import binascii
import hashlib
import hmac
from datetime import UTC, datetime

from tcapi_sdk.errors import InvalidTimestampError, KeyMaterialError

ALGORITHM = "TC3-HMAC-SHA256"
KEY_PREFIX = b"TC3"
TERMINATOR = "tc3_request"

SHA256_DIGEST_LEN = 32
SHA256_HEX_LEN = SHA256_DIGEST_LEN * 2


def _as_bytes(data: str | bytes) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def sha256(data: str | bytes) -> bytes:
    return hashlib.sha256(_as_bytes(data)).digest()


def sha256_hex(data: str | bytes) -> str:
    return hashlib.sha256(_as_bytes(data)).hexdigest()


def hmac_sha256(key: bytes, data: str | bytes) -> bytes:
    return hmac.new(key, _as_bytes(data), hashlib.sha256).digest()


class HexBuffer:
    """Scratch space for the hex encoding of one SHA-256 digest.

    Every call to :meth:`hex` overwrites the same 64 bytes and returns a
    read-only view of them. The view handed out by the previous call is
    released first, so reading that view afterwards raises ``ValueError``.
    Slices or other views derived from it are not released and will show the
    newer encoding. Consume or copy a view (``str(view,
    "ascii")``) before asking for the next one. A buffer belongs to a single
    signing call and must not be shared between threads.
    """

    def __init__(self) -> None:
        self._buf = bytearray(SHA256_HEX_LEN)
        self._view: memoryview | None = None

    def hex(self, digest: bytes) -> memoryview:
        if len(digest) != SHA256_DIGEST_LEN:
            raise ValueError(
                f"expected a {SHA256_DIGEST_LEN}-byte digest, got {len(digest)} bytes"
            )
        if self._view is not None:
            self._view.release()
        self._buf[:] = binascii.hexlify(digest)
        self._view = memoryview(self._buf).toreadonly()
        return self._view

    def hex_str(self, digest: bytes) -> str:
        return str(self.hex(digest), "ascii")


def utc_date(timestamp: int) -> str:
    # bool is an int subclass but never a meaningful clock value.
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise InvalidTimestampError(
            f"timestamp must be an integer number of seconds, got {type(timestamp).__name__}"
        )
    if timestamp < 0:
        raise InvalidTimestampError(f"timestamp must be non-negative, got {timestamp}")
    try:
        moment = datetime.fromtimestamp(timestamp, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestampError(
            f"timestamp {timestamp} is outside the representable calendar range"
        ) from exc
    return moment.date().isoformat()


def credential_scope(date: str, service: str) -> str:
    return f"{date}/{service}/{TERMINATOR}"


def derive_signing_key(secret_key: str | bytes, date: str, service: str) -> bytes:
    """Derive the day and service scoped signing key.

    ``HMAC(HMAC(HMAC("TC3" + secret_key, date), service), "tc3_request")``
    """
    if not secret_key:
        raise KeyMaterialError("secret_key must be non-empty")
    try:
        key = KEY_PREFIX + _as_bytes(secret_key)
    except UnicodeEncodeError as exc:
        raise KeyMaterialError("secret_key cannot be encoded as UTF-8") from exc

    secret_date = hmac_sha256(key, date)
    secret_service = hmac_sha256(secret_date, service)
    return hmac_sha256(secret_service, TERMINATOR)


def build_string_to_sign(
    *,
    timestamp: int,
    scope: str,
    canonical_request: str,
    hex_buffer: HexBuffer | None = None,
) -> str:
    buf = hex_buffer or HexBuffer()
    hashed_canonical_request = buf.hex_str(sha256(canonical_request))
    return "\n".join([ALGORITHM, str(timestamp), scope, hashed_canonical_request])


def compute_signature(
    signing_key: bytes,
    string_to_sign: str,
    hex_buffer: HexBuffer | None = None,
) -> str:
    buf = hex_buffer or HexBuffer()
    return buf.hex_str(hmac_sha256(signing_key, string_to_sign))


def verify_signature(*, expected: str, signature: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
