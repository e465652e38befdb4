"""Registered-claims validation pass layered over the codec.

The codec never looks at claims. Callers that want RFC 7519 section 4.1
checks run :func:`validate_claims` on the parsed payload.
"""

import time
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

from jwkit.core.settings import ClaimsSettings
from jwkit.errors import ErrorKind, JoseError


class RegisteredClaims(BaseModel):
    """Registered claim names; any other claim is kept as an extra member."""

    model_config = ConfigDict(extra="allow")

    iss: str | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    exp: int | float | None = None
    nbf: int | float | None = None
    iat: int | float | None = None
    jti: str | None = None


def _as_mapping(claims: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(claims, BaseModel):
        return claims.model_dump(by_alias=True, exclude_none=True)
    return claims


def _numeric_date(claims: Mapping[str, Any], name: str) -> float | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise JoseError(ErrorKind.PAYLOAD, "Malformed time claim")
    return float(value)


def validate_claims(
    claims: Mapping[str, Any] | BaseModel,
    *,
    issuer: str | None = None,
    audience: str | None = None,
    leeway: int | None = None,
    now: float | None = None,
    required: Iterable[str] = (),
    settings: ClaimsSettings | None = None,
) -> None:
    """Check ``exp``, ``nbf``, ``iss`` and ``aud`` of a decoded payload.

    Unset arguments fall back to :class:`ClaimsSettings`; an empty issuer or
    audience there disables that check.

    Raises:
        JoseError: ``Expired`` when ``exp`` has passed, ``Early`` when ``nbf``
            lies in the future, ``Payload`` for a missing required claim,
            a malformed time claim, or an issuer/audience mismatch.
    """
    settings = settings or ClaimsSettings()
    data = _as_mapping(claims)
    issuer = issuer if issuer is not None else settings.issuer or None
    audience = audience if audience is not None else settings.audience or None
    leeway = leeway if leeway is not None else settings.leeway_seconds
    now = now if now is not None else time.time()

    for name in required:
        if data.get(name) is None:
            logger.debug("JWT is missing required claim {}", name)
            raise JoseError(ErrorKind.PAYLOAD, "Missing required claim")

    exp = _numeric_date(data, "exp")
    if exp is not None and exp <= now - leeway:
        raise JoseError(ErrorKind.EXPIRED, "Token has expired")

    nbf = _numeric_date(data, "nbf")
    if nbf is not None and nbf > now + leeway:
        raise JoseError(ErrorKind.EARLY, "Token is not yet valid")

    _numeric_date(data, "iat")

    if issuer is not None and data.get("iss") != issuer:
        raise JoseError(ErrorKind.PAYLOAD, "Issuer does not match")

    if audience is not None:
        aud = data.get("aud")
        if isinstance(aud, str):
            audiences = [aud]
        elif isinstance(aud, list):
            audiences = aud
        else:
            audiences = []
        if audience not in audiences:
            raise JoseError(ErrorKind.PAYLOAD, "Audience does not match")
