"""
Decoding of transport-safe message bodies.

Mail APIs return message bodies as URL-safe base64 (``-`` and ``_`` in
place of ``+`` and ``/``), often with the trailing ``=`` padding removed.
"""

import base64
import binascii

from .exceptions import MalformedPayloadError

_TO_STANDARD = str.maketrans("-_", "+/")


def decode_payload(encoded: str) -> str:
    """
    Decode a URL-safe base64 body into UTF-8 text.

    Args:
        encoded: The encoded body, with or without padding.

    Returns:
        The decoded text.

    Raises:
        MalformedPayloadError: If the input is not valid URL-safe base64 or
            the decoded bytes are not valid UTF-8.
    """
    if not isinstance(encoded, str):
        raise MalformedPayloadError(
            f"expected str, got {type(encoded).__name__}"
        )

    standard = encoded.translate(_TO_STANDARD).rstrip("=")
    if len(standard) % 4 == 1:
        raise MalformedPayloadError(
            "impossible length for base64 data",
            details={"length": len(encoded)},
        )
    standard += "=" * (-len(standard) % 4)

    try:
        raw = base64.b64decode(standard, validate=True)
    except binascii.Error as e:
        raise MalformedPayloadError(f"invalid base64: {e}") from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayloadError(f"body is not UTF-8 text: {e}") from e


def encode_transport_safe(text: str) -> str:
    """Encode text the way mail APIs transport it: URL-safe base64, unpadded."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")
