"""RSA signing key generation and PEM <-> JWK conversion."""

import uuid_utils
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from jwkit.crypto.b64 import uint_to_b64url
from jwkit.crypto.jwk import DEFAULT_RSA_ALG, Jwk, RsaPrivate, RsaPublic
from jwkit.errors import ErrorKind, JoseError

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


def generate_rsa_jwk(kid: str | None = None, key_size: int = RSA_KEY_SIZE) -> Jwk:
    """Generate a new private RSA JWK for RS256 signing."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )
    return private_key_to_jwk(private_key, kid or str(uuid_utils.uuid7()))


def private_key_to_jwk(key: rsa.RSAPrivateKey, kid: str | None = None) -> Jwk:
    """Convert a ``cryptography`` private key to a JWK with all CRT members."""
    numbers = key.private_numbers()
    body = RsaPrivate(
        e=uint_to_b64url(numbers.public_numbers.e),
        n=uint_to_b64url(numbers.public_numbers.n),
        d=uint_to_b64url(numbers.d),
        p=uint_to_b64url(numbers.p),
        q=uint_to_b64url(numbers.q),
        dp=uint_to_b64url(numbers.dmp1),
        dq=uint_to_b64url(numbers.dmq1),
        qi=uint_to_b64url(numbers.iqmp),
    )
    return Jwk(kty="RSA", kid=kid, alg=DEFAULT_RSA_ALG, use="sig", body=body)


def public_key_to_jwk(key: rsa.RSAPublicKey, kid: str | None = None) -> Jwk:
    """Convert a ``cryptography`` public key to a JWK."""
    numbers = key.public_numbers()
    body = RsaPublic(e=uint_to_b64url(numbers.e), n=uint_to_b64url(numbers.n))
    return Jwk(kty="RSA", kid=kid, alg=DEFAULT_RSA_ALG, use="sig", body=body)


def pem_to_jwk(pem: str, kid: str | None = None) -> Jwk:
    """Convert a PEM RSA key (PKCS#8 / PKCS#1 private or SPKI public) to a JWK."""
    try:
        if "PRIVATE KEY" in pem:
            loaded = serialization.load_pem_private_key(pem.encode(), password=None)
        else:
            loaded = serialization.load_pem_public_key(pem.encode())
    except ValueError as exc:
        raise JoseError(ErrorKind.INVALID, "Failed to load PEM key") from exc
    if isinstance(loaded, rsa.RSAPrivateKey):
        return private_key_to_jwk(loaded, kid)
    if isinstance(loaded, rsa.RSAPublicKey):
        return public_key_to_jwk(loaded, kid)
    raise JoseError(ErrorKind.INVALID, "PEM key is not RSA")


def jwk_to_pem(jwk: Jwk) -> str:
    """Export a JWK as PEM: PKCS#8 for private keys, SPKI for public ones."""
    if isinstance(jwk.body, RsaPrivate):
        try:
            private_key = jwk.body.private_key()
        except ValueError as exc:
            raise JoseError(ErrorKind.INVALID, "Invalid key material") from exc
        return private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()
    return (
        jwk.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
