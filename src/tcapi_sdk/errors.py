class SigningError(Exception):
    """Base class for every failure raised while signing a request."""


class InvalidTimestampError(SigningError, ValueError):
    """The timestamp does not map to a valid UTC calendar date."""


class SerializationError(SigningError, ValueError):
    """The payload cannot be serialized to a single JSON object."""


class KeyMaterialError(SigningError, ValueError):
    """The credential cannot be used as HMAC key material."""


class InvalidHeaderValueError(SigningError, ValueError):
    """A descriptor field cannot be sent as an HTTP header value."""
