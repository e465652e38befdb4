"""Compact JWT (RFC 7519) codec: parsing, verification and signing.

Parsing follows a small builder::

    jwt = Jwt.from_token(token, Claims).with_verification_key(jwk).parse()

The signature is always checked against the original header and payload
segments as received, never against a re-serialization of the parsed values.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from jwkit.crypto.b64 import b64url_decode, b64url_encode
from jwkit.crypto.jwk import Jwk
from jwkit.errors import ErrorKind, JoseError
from jwkit.jose.header import JWT_TYPE, Header

T = TypeVar("T")

Claims = dict[str, Any]

SEGMENT_COUNT = 3


@lru_cache(maxsize=64)
def _adapter(payload_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(payload_type)


def split_token(token: str) -> tuple[str, str, str]:
    """Split a compact JWT into its header, payload and signature segments."""
    segments = token.split(".")
    if len(segments) != SEGMENT_COUNT:
        raise JoseError(ErrorKind.INVALID, "JWT does not have 3 segments")
    header_segment, payload_segment, signature_segment = segments
    return header_segment, payload_segment, signature_segment


def _decode_header_segment(segment: str) -> Header:
    try:
        return Header.model_validate_json(b64url_decode(segment))
    except (JoseError, ValidationError) as exc:
        raise JoseError(ErrorKind.INVALID, "Failed to decode header") from exc


def _encode_segment(value: Any) -> str:
    try:
        raw = _adapter(type(value)).dump_json(value, by_alias=True, exclude_none=True)
    except (PydanticSchemaGenerationError, ValueError) as exc:
        raise JoseError(ErrorKind.INVALID, "Failed to encode segment") from exc
    return b64url_encode(raw)


def decode_header(token: str) -> Header:
    """Return the header of ``token`` without checking its signature."""
    header_segment, _, _ = split_token(token)
    return _decode_header_segment(header_segment)


@dataclass
class Jwt(Generic[T]):
    """A JSON Web Token: header, caller-typed payload, base64url signature.

    ``header`` is ``None`` and ``signature`` empty for a token created with
    :meth:`new` until :meth:`sign` is called.
    """

    payload: T
    header: Header | None = None
    signature: str = ""

    @classmethod
    def new(cls, payload: T) -> "Jwt[T]":
        return cls(payload=payload)

    @classmethod
    def from_token(cls, token: str, payload_type: Any = Claims) -> "Parser[Any]":
        return Parser(token, payload_type)

    def sign(self, jwk: Jwk) -> str:
        """Sign the payload with ``jwk`` and return the compact serialization."""
        header = Header(alg=jwk.alg(), typ=JWT_TYPE, kid=jwk.kid)
        signing_input = f"{_encode_segment(header)}.{_encode_segment(self.payload)}"
        signature = b64url_encode(jwk.sign(signing_input.encode("ascii")))
        self.header = header
        self.signature = signature
        logger.debug("Signed JWT alg={} kid={}", header.alg, header.kid)
        return f"{signing_input}.{signature}"


class Parser(Generic[T]):
    """Single-use parser for one compact token."""

    def __init__(self, token: str, payload_type: Any = Claims) -> None:
        self._token = token
        self._payload_type = payload_type
        self._key: Jwk | None = None
        self._consumed = False

    def with_verification_key(self, jwk: Jwk | None) -> "Parser[T]":
        """Set the key to verify against; the last call wins."""
        self._key = jwk
        return self

    def parse(self) -> Jwt[T]:
        if self._consumed:
            raise JoseError(ErrorKind.INVALID, "Parser already consumed")
        self._consumed = True

        header_segment, payload_segment, signature = split_token(self._token)
        header = _decode_header_segment(header_segment)
        if header.is_unsecured:
            raise JoseError(ErrorKind.HEADER, "Unsecured JWT not accepted")
        try:
            payload = _adapter(self._payload_type).validate_json(
                b64url_decode(payload_segment)
            )
        except (JoseError, ValidationError) as exc:
            raise JoseError(ErrorKind.INVALID, "Failed to decode payload") from exc

        if self._key is not None:
            _verify_segments(
                self._key, header, header_segment, payload_segment, signature
            )
        return Jwt(payload=payload, header=header, signature=signature)


def _verify_segments(
    jwk: Jwk,
    header: Header,
    header_segment: str,
    payload_segment: str,
    signature_segment: str,
) -> None:
    if header.alg != jwk.alg():
        raise JoseError(ErrorKind.HEADER, "Algorithm does not match key")
    try:
        signature = b64url_decode(signature_segment)
    except JoseError as exc:
        raise JoseError(ErrorKind.INVALID, "Failed to decode signature") from exc
    signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
    jwk.verify(signing_input, signature)
    logger.debug("Verified JWT signature alg={} kid={}", header.alg, header.kid)
