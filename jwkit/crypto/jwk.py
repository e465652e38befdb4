"""JSON Web Key model (RFC 7517) with RS256 signing and verification."""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    field_validator,
    model_serializer,
    model_validator,
)

from jwkit.crypto.b64 import b64url_decode, b64url_to_uint
from jwkit.errors import ErrorKind, JoseError

DEFAULT_RSA_ALG = "RS256"

# Algorithm name -> hash used with RSASSA-PKCS1-v1_5.
ALGORITHMS: dict[str, type[hashes.HashAlgorithm]] = {
    DEFAULT_RSA_ALG: hashes.SHA256,
}

_PRIVATE_MEMBERS = ("d", "p", "q", "dp", "dq", "qi")
_BODY_MEMBERS = ("e", "n", *_PRIVATE_MEMBERS)


def _check_uint(value: str) -> str:
    if not value:
        raise ValueError("empty integer member")
    try:
        b64url_decode(value)
    except JoseError as exc:
        raise ValueError(exc.msg) from exc
    return value


B64UInt = Annotated[str, AfterValidator(_check_uint)]


def _verify_pkcs1(
    numbers: rsa.RSAPublicNumbers, message: bytes, signature: bytes, alg: str
) -> None:
    try:
        numbers.public_key().verify(
            signature, message, padding.PKCS1v15(), ALGORITHMS[alg]()
        )
    except (InvalidSignature, UnsupportedAlgorithm, ValueError) as exc:
        raise JoseError(
            ErrorKind.CERTIFICATE, "Signature does not match certificate"
        ) from exc


class RsaPublic(BaseModel):
    """Public RSA key body: modulus ``n`` and exponent ``e``."""

    model_config = ConfigDict(frozen=True)

    e: B64UInt
    n: B64UInt

    def public_numbers(self) -> rsa.RSAPublicNumbers:
        return rsa.RSAPublicNumbers(b64url_to_uint(self.e), b64url_to_uint(self.n))

    def verify(self, message: bytes, signature: bytes, alg: str) -> None:
        _verify_pkcs1(self.public_numbers(), message, signature, alg)


class RsaPrivate(BaseModel):
    """Private RSA key body; CRT members are optional and derived when absent."""

    model_config = ConfigDict(frozen=True)

    e: B64UInt
    n: B64UInt
    d: B64UInt
    p: B64UInt
    q: B64UInt
    dp: B64UInt | None = None
    dq: B64UInt | None = None
    qi: B64UInt | None = None

    def public_numbers(self) -> rsa.RSAPublicNumbers:
        return rsa.RSAPublicNumbers(b64url_to_uint(self.e), b64url_to_uint(self.n))

    def private_key(self) -> rsa.RSAPrivateKey:
        d = b64url_to_uint(self.d)
        p = b64url_to_uint(self.p)
        q = b64url_to_uint(self.q)
        dmp1 = b64url_to_uint(self.dp) if self.dp else rsa.rsa_crt_dmp1(d, p)
        dmq1 = b64url_to_uint(self.dq) if self.dq else rsa.rsa_crt_dmq1(d, q)
        iqmp = b64url_to_uint(self.qi) if self.qi else rsa.rsa_crt_iqmp(p, q)
        numbers = rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=dmp1,
            dmq1=dmq1,
            iqmp=iqmp,
            public_numbers=self.public_numbers(),
        )
        return numbers.private_key()

    def verify(self, message: bytes, signature: bytes, alg: str) -> None:
        _verify_pkcs1(self.public_numbers(), message, signature, alg)

    def sign(self, message: bytes, alg: str) -> bytes:
        try:
            return self.private_key().sign(
                message, padding.PKCS1v15(), ALGORITHMS[alg]()
            )
        except (UnsupportedAlgorithm, ValueError, ZeroDivisionError) as exc:
            raise JoseError(ErrorKind.INTERNAL, "Sign message") from exc


def _key_variant(value: Any) -> str:
    if isinstance(value, RsaPrivate):
        return "private"
    if isinstance(value, RsaPublic):
        return "public"
    if isinstance(value, Mapping) and value.get("d"):
        return "private"
    return "public"


KeyBody = Annotated[
    Annotated[RsaPrivate, Tag("private")] | Annotated[RsaPublic, Tag("public")],
    Discriminator(_key_variant),
]


class Jwk(BaseModel):
    """A single JSON Web Key.

    Metadata members live on the model; the key-type members (``n``, ``e``,
    ``d``...) are flattened at the top level of the JSON object and routed to
    ``body``. A non-empty ``d`` selects the private variant. Unknown members
    are ignored; absent members are never serialized.
    """

    model_config = ConfigDict(frozen=True)

    kty: Literal["RSA"]
    kid: str | None = None
    algorithm: str | None = Field(default=None, alias="alg")
    use: str | None = None
    key_ops: list[str] | None = None
    x5u: str | None = None
    x5c: str | list[str] | None = None
    x5t: str | None = None
    x5t_s256: str | None = Field(default=None, alias="x5t#S256")
    body: KeyBody

    @model_validator(mode="before")
    @classmethod
    def _nest_key_body(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        if isinstance(data.get("body"), RsaPublic | RsaPrivate):
            return data
        nested = {
            k: v for k, v in data.items() if k not in _BODY_MEMBERS and k != "body"
        }
        nested["body"] = {k: v for k, v in data.items() if k in _BODY_MEMBERS}
        return nested

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str | None) -> str | None:
        if value is not None and value not in ALGORITHMS:
            raise ValueError(f"unsupported algorithm {value!r}")
        return value

    @model_serializer(mode="wrap")
    def _flatten_key_body(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        body = data.pop("body", None) or {}
        return {**data, **body}

    @classmethod
    def parse(cls, key: str | bytes) -> "Jwk":
        """Deserialize a single JWK JSON object."""
        try:
            return cls.model_validate_json(key)
        except ValidationError as exc:
            raise JoseError(ErrorKind.INVALID, "Failed to decode key") from exc

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Jwk":
        """Build a JWK from already-decoded JSON."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise JoseError(ErrorKind.INVALID, "Failed to decode key") from exc

    @property
    def is_private(self) -> bool:
        return isinstance(self.body, RsaPrivate)

    def alg(self) -> str:
        """Declared algorithm, or the one implied by the key type."""
        return self.algorithm or DEFAULT_RSA_ALG

    def public(self) -> "Jwk":
        """Return this key without its private members."""
        if not isinstance(self.body, RsaPrivate):
            return self
        return self.model_copy(
            update={"body": RsaPublic(e=self.body.e, n=self.body.n)}
        )

    def public_key(self) -> rsa.RSAPublicKey:
        try:
            return self.body.public_numbers().public_key()
        except ValueError as exc:
            raise JoseError(ErrorKind.INVALID, "Invalid key material") from exc

    def verify(self, message: bytes, signature: bytes) -> None:
        """Check an RSASSA-PKCS1-v1_5 signature; raise Certificate on mismatch."""
        self.body.verify(message, signature, self.alg())

    def sign(self, message: bytes) -> bytes:
        """Sign ``message``; only private keys can sign."""
        match self.body:
            case RsaPrivate():
                return self.body.sign(message, self.alg())
            case _:
                raise JoseError(ErrorKind.INVALID, "Key doesn't support signing")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
