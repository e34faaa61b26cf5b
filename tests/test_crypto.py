import hashlib
import hmac

import pytest

from tcapi_sdk.crypto import (
    HexBuffer,
    build_string_to_sign,
    compute_signature,
    credential_scope,
    derive_signing_key,
    sha256,
    sha256_hex,
    utc_date,
    verify_signature,
)
from tcapi_sdk.errors import InvalidTimestampError, KeyMaterialError, SigningError


def _reference_signing_key(secret_key: bytes, date: str, service: str) -> bytes:
    secret_date = hmac.new(b"TC3" + secret_key, date.encode(), hashlib.sha256).digest()
    secret_service = hmac.new(secret_date, service.encode(), hashlib.sha256).digest()
    return hmac.new(secret_service, b"tc3_request", hashlib.sha256).digest()


def test_utc_date_formats_calendar_day() -> None:
    assert utc_date(1700000000) == "2023-11-14"
    assert utc_date(0) == "1970-01-01"
    # Last second of a UTC day stays on that day.
    assert utc_date(1700006399) == "2023-11-14"
    assert utc_date(1700006400) == "2023-11-15"


@pytest.mark.parametrize("timestamp", [-1, 2**63, 10**12, 1.5, True, "1700000000"])
def test_utc_date_rejects_unrepresentable_timestamps(timestamp: object) -> None:
    with pytest.raises(InvalidTimestampError):
        utc_date(timestamp)  # type: ignore[arg-type]


def test_invalid_timestamp_is_a_signing_error_and_value_error() -> None:
    with pytest.raises(SigningError):
        utc_date(-5)
    with pytest.raises(ValueError):
        utc_date(-5)


def test_credential_scope_layout() -> None:
    assert credential_scope("2023-11-14", "cvm") == "2023-11-14/cvm/tc3_request"


def test_derive_signing_key_matches_reference_chain() -> None:
    expected = _reference_signing_key(b"secret", "2023-11-14", "cvm")

    assert derive_signing_key("secret", "2023-11-14", "cvm") == expected
    assert derive_signing_key(b"secret", "2023-11-14", "cvm") == expected


def test_derive_signing_key_accepts_non_utf8_bytes() -> None:
    raw_key = b"\xff\xfe\x00binary"
    expected = _reference_signing_key(raw_key, "2024-02-29", "sms")

    assert derive_signing_key(raw_key, "2024-02-29", "sms") == expected


def test_derive_signing_key_is_scoped_by_date_and_service() -> None:
    base = derive_signing_key("secret", "2023-11-14", "cvm")

    assert derive_signing_key("secret", "2023-11-15", "cvm") != base
    assert derive_signing_key("secret", "2023-11-14", "cbs") != base


@pytest.mark.parametrize("secret_key", ["", b"", "\udcff"])
def test_derive_signing_key_rejects_unusable_key_material(secret_key: str | bytes) -> None:
    with pytest.raises(KeyMaterialError):
        derive_signing_key(secret_key, "2023-11-14", "cvm")


def test_build_string_to_sign_layout() -> None:
    canonical_request = "POST\n/\n\nheaders\n\nsigned\nhash"

    string_to_sign = build_string_to_sign(
        timestamp=1700000000,
        scope="2023-11-14/cvm/tc3_request",
        canonical_request=canonical_request,
    )

    assert string_to_sign.split("\n") == [
        "TC3-HMAC-SHA256",
        "1700000000",
        "2023-11-14/cvm/tc3_request",
        hashlib.sha256(canonical_request.encode()).hexdigest(),
    ]


def test_compute_signature_is_lowercase_hex_hmac() -> None:
    key = _reference_signing_key(b"secret", "2023-11-14", "cvm")
    expected = hmac.new(key, b"string to sign", hashlib.sha256).hexdigest()

    signature = compute_signature(key, "string to sign")

    assert signature == expected
    assert signature == signature.lower()
    assert len(signature) == 64


def test_verify_signature() -> None:
    signature = sha256_hex(b"abc")

    assert verify_signature(expected=signature, signature=signature)
    assert not verify_signature(expected=signature, signature=sha256_hex(b"abd"))
    assert not verify_signature(expected=signature, signature="")


def test_hex_buffer_encodes_lowercase_digest() -> None:
    buf = HexBuffer()
    digest = sha256(b"abc")

    view = buf.hex(digest)

    assert view.readonly
    assert len(view) == 64
    assert str(view, "ascii") == digest.hex()


def test_hex_buffer_invalidates_previous_view() -> None:
    buf = HexBuffer()
    first = buf.hex(sha256(b"first"))
    copied = str(first, "ascii")

    second = buf.hex(sha256(b"second"))

    assert copied == sha256_hex(b"first")
    assert str(second, "ascii") == sha256_hex(b"second")
    with pytest.raises(ValueError):
        bytes(first)


def test_hex_buffer_rejects_wrong_digest_length() -> None:
    buf = HexBuffer()

    with pytest.raises(ValueError):
        buf.hex(b"short")
    with pytest.raises(ValueError):
        buf.hex(b"\x00" * 33)


def test_hex_buffer_str_copy_survives_reuse() -> None:
    buf = HexBuffer()

    first = buf.hex_str(sha256(b"one"))
    second = buf.hex_str(sha256(b"two"))

    assert first == sha256_hex(b"one")
    assert second == sha256_hex(b"two")


def test_hex_buffer_view_copied_to_bytes_survives_reuse() -> None:
    buf = HexBuffer()
    first = bytes(buf.hex(sha256(b"first")))

    buf.hex(sha256(b"second"))

    assert first == sha256_hex(b"first").encode("ascii")
