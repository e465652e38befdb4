"""Public entry points for signing, parsing and verifying tokens."""

from typing import Any

from jwkit.crypto.jwk import Jwk
from jwkit.errors import ErrorKind, JoseError
from jwkit.jose.claims import validate_claims
from jwkit.jose.header import Header
from jwkit.jose.jwks import KeySet
from jwkit.jose.jwt import Claims, Jwt, decode_header


def sign_token(payload: Any, jwk: Jwk) -> str:
    """Sign ``payload`` with a private JWK and return the compact token."""
    return Jwt.new(payload).sign(jwk)


def parse_token(token: str, payload_type: Any = Claims) -> Jwt[Any]:
    """Decode ``token`` without checking its signature."""
    return Jwt.from_token(token, payload_type).parse()


def verify_token(
    token: str,
    jwk: Jwk,
    payload_type: Any = Claims,
    *,
    validate: bool = False,
    **claim_options: Any,
) -> Jwt[Any]:
    """Decode ``token`` and verify its signature against ``jwk``.

    With ``validate=True`` the registered claims are checked as well;
    ``claim_options`` are forwarded to :func:`validate_claims`.
    """
    jwt = Jwt.from_token(token, payload_type).with_verification_key(jwk).parse()
    if validate:
        validate_claims(jwt.payload, **claim_options)
    return jwt


async def verify_token_with_key_set(
    token: str,
    key_set: KeySet,
    payload_type: Any = Claims,
    *,
    refresh_on_miss: bool = True,
    validate: bool = False,
    **claim_options: Any,
) -> Jwt[Any]:
    """Verify ``token`` with the key selected by its header ``kid``.

    An unknown ``kid`` triggers one refresh of the key set before giving up,
    which covers signing-key rotation at the issuer.
    """
    header: Header = decode_header(token)
    try:
        jwk = key_set.select(header.kid)
    except JoseError as exc:
        if exc.kind is not ErrorKind.KEY or not refresh_on_miss:
            raise
        await key_set.refresh()
        jwk = key_set.select(header.kid)
    return verify_token(
        token, jwk, payload_type, validate=validate, **claim_options
    )
