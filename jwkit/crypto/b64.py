"""URL-safe, unpadded Base64 (RFC 4648 section 5) and JWK integer helpers."""

import base64
import re

from jwkit.errors import ErrorKind, JoseError

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str | bytes) -> bytes:
    """Decode unpadded base64url, rejecting anything outside the alphabet."""
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as exc:
            raise JoseError(ErrorKind.INVALID, "Invalid base64url") from exc
    if not _ALPHABET.fullmatch(data) or len(data) % 4 == 1:
        raise JoseError(ErrorKind.INVALID, "Invalid base64url")
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded)


def uint_to_b64url(value: int) -> str:
    """Encode a non-negative integer as minimal big-endian base64url."""
    if value < 0:
        raise ValueError("JWK integers are unsigned")
    byte_length = max(1, (value.bit_length() + 7) // 8)
    return b64url_encode(value.to_bytes(byte_length, byteorder="big"))


def b64url_to_uint(data: str) -> int:
    """Decode a base64url big-endian integer; leading zero bytes are accepted."""
    return int.from_bytes(b64url_decode(data), byteorder="big")
