"""Tests for the JWK model and the RS256 primitive."""

import json

import pytest

from jwkit.crypto.jwk import Jwk, RsaPrivate, RsaPublic
from jwkit.errors import ErrorKind, JoseError

MESSAGE = b"1234567890"


def _public_json(jwk: Jwk) -> str:
    return jwk.public().to_json()


class TestParse:
    """Tests for Jwk.parse."""

    def test_fixture_is_private(self, fixture_key: Jwk) -> None:
        assert isinstance(fixture_key.body, RsaPrivate)
        assert fixture_key.is_private
        assert fixture_key.kty == "RSA"
        assert fixture_key.kid == "test"
        assert fixture_key.algorithm == "RS256"
        assert fixture_key.body.e == "AQAB"
        assert fixture_key.body.n.startswith("liMW7uxnzq8KejzQA1YC")
        assert fixture_key.body.qi is not None

    def test_without_d_is_public(self, fixture_key: Jwk) -> None:
        key = Jwk.parse(_public_json(fixture_key))
        assert isinstance(key.body, RsaPublic)
        assert not key.is_private

    def test_empty_d_is_public(self, fixture_key: Jwk) -> None:
        data = fixture_key.public().to_dict()
        data["d"] = ""
        key = Jwk.parse(json.dumps(data))
        assert isinstance(key.body, RsaPublic)

    def test_unknown_members_ignored(self, fixture_key: Jwk) -> None:
        data = fixture_key.public().to_dict()
        data["ext"] = True
        data["x-custom"] = {"nested": 1}
        key = Jwk.parse(json.dumps(data))
        assert key == fixture_key.public()

    def test_body_member_cannot_replace_key_material(
        self, fixture_key: Jwk, other_jwk: Jwk
    ) -> None:
        data = fixture_key.public().to_dict()
        data["body"] = other_jwk.public().to_dict()
        data["algorithm"] = "HS256"
        data["x5t_s256"] = "ignored"
        key = Jwk.parse(json.dumps(data))
        assert key == fixture_key.public()
        assert key.body.n == fixture_key.body.n
        assert key.alg() == "RS256"
        assert key.x5t_s256 is None

    @pytest.mark.parametrize("body", ["x", 1, None, []])
    def test_non_object_body_member_ignored(
        self, fixture_key: Jwk, body: object
    ) -> None:
        data = fixture_key.public().to_dict()
        data["body"] = body
        assert Jwk.parse(json.dumps(data)) == fixture_key.public()

    def test_private_body_member_ignored(self, fixture_key: Jwk) -> None:
        data = fixture_key.public().to_dict()
        data["body"] = fixture_key.to_dict()
        key = Jwk.parse(json.dumps(data))
        assert not key.is_private

    def test_optional_metadata_kept(self, fixture_key: Jwk) -> None:
        data = fixture_key.public().to_dict()
        data.update(
            {
                "use": "sig",
                "key_ops": ["verify"],
                "x5u": "https://example.com/cert",
                "x5c": ["MIIB"],
                "x5t": "thumb",
                "x5t#S256": "thumb256",
            }
        )
        key = Jwk.parse(json.dumps(data))
        assert key.key_ops == ["verify"]
        assert key.x5c == ["MIIB"]
        assert key.x5t_s256 == "thumb256"
        assert key.to_dict()["x5t#S256"] == "thumb256"

    def test_accepts_bytes(self, fixture_key_json: str) -> None:
        assert Jwk.parse(fixture_key_json.encode()).kid == "test"

    @pytest.mark.parametrize(
        "document",
        [
            "not json",
            "[]",
            '{"n": "AQAB", "e": "AQAB"}',
            '{"kty": "EC", "crv": "P-256", "x": "AA", "y": "AA"}',
            '{"kty": "RSA", "e": "AQAB"}',
            '{"kty": "RSA", "n": "!!", "e": "AQAB"}',
            '{"kty": "RSA", "n": "", "e": "AQAB"}',
            '{"kty": "RSA", "n": "AQAB", "e": "AQAB", "d": "AQAB"}',
            '{"kty": "RSA", "n": "AQAB", "e": "AQAB", "alg": "HS256"}',
        ],
    )
    def test_malformed_rejected(self, document: str) -> None:
        with pytest.raises(JoseError) as info:
            Jwk.parse(document)
        assert info.value == JoseError(ErrorKind.INVALID, "Failed to decode key")

    def test_from_dict(self, fixture_key: Jwk) -> None:
        assert Jwk.from_dict(fixture_key.to_dict()) == fixture_key


class TestSerialization:
    """Tests for JWK JSON encoding."""

    def test_roundtrip(self, fixture_key: Jwk) -> None:
        assert Jwk.parse(fixture_key.to_json()) == fixture_key

    def test_flattened_members(self, fixture_key: Jwk) -> None:
        data = fixture_key.to_dict()
        assert "body" not in data
        assert {"kty", "kid", "alg", "e", "n", "d", "p", "q"} <= data.keys()

    def test_no_nulls(self, fixture_key: Jwk) -> None:
        data = json.loads(fixture_key.public().to_json())
        assert None not in data.values()
        assert set(data) == {"kty", "kid", "alg", "e", "n"}


class TestAlg:
    """Tests for Jwk.alg."""

    def test_declared(self, fixture_key: Jwk) -> None:
        assert fixture_key.alg() == "RS256"

    def test_implied_when_absent(self) -> None:
        key = Jwk.parse('{"kty": "RSA", "n": "AQAB", "e": "AQAB"}')
        assert key.algorithm is None
        assert key.alg() == "RS256"


class TestPublicProjection:
    """Tests for Jwk.public."""

    def test_drops_private_members(self, fixture_key: Jwk) -> None:
        public = fixture_key.public()
        assert isinstance(public.body, RsaPublic)
        assert public.kid == fixture_key.kid
        assert "d" not in public.to_dict()

    def test_public_of_public_is_same_key(self, fixture_key: Jwk) -> None:
        public = fixture_key.public()
        assert public.public() is public


class TestSignVerify:
    """Tests for RS256 signing and verification."""

    def test_sign_then_verify(self, fixture_key: Jwk) -> None:
        signature = fixture_key.sign(MESSAGE)
        assert len(signature) == 256
        fixture_key.verify(MESSAGE, signature)

    def test_public_key_verifies(self, fixture_key: Jwk) -> None:
        signature = fixture_key.sign(MESSAGE)
        fixture_key.public().verify(MESSAGE, signature)

    def test_deterministic(self, fixture_key: Jwk) -> None:
        assert fixture_key.sign(MESSAGE) == fixture_key.sign(MESSAGE)

    def test_public_key_cannot_sign(self, fixture_key: Jwk) -> None:
        with pytest.raises(JoseError) as info:
            fixture_key.public().sign(MESSAGE)
        assert info.value == JoseError(
            ErrorKind.INVALID, "Key doesn't support signing"
        )

    def test_wrong_message_rejected(self, fixture_key: Jwk) -> None:
        signature = fixture_key.sign(MESSAGE)
        with pytest.raises(JoseError) as info:
            fixture_key.verify(b"1234567891", signature)
        assert info.value == JoseError(
            ErrorKind.CERTIFICATE, "Signature does not match certificate"
        )

    def test_wrong_key_rejected(self, fixture_key: Jwk, other_jwk: Jwk) -> None:
        signature = other_jwk.sign(MESSAGE)
        with pytest.raises(JoseError) as info:
            fixture_key.verify(MESSAGE, signature)
        assert info.value.kind is ErrorKind.CERTIFICATE

    @pytest.mark.parametrize("signature", [b"", b"\x00" * 10, b"\xff" * 512])
    def test_malformed_signature_length(
        self, fixture_key: Jwk, signature: bytes
    ) -> None:
        with pytest.raises(JoseError) as info:
            fixture_key.verify(MESSAGE, signature)
        assert info.value.kind is ErrorKind.CERTIFICATE

    def test_unusable_modulus_is_certificate_error(self) -> None:
        key = Jwk.parse('{"kty": "RSA", "n": "AQAB", "e": "AQAB"}')
        with pytest.raises(JoseError) as info:
            key.verify(MESSAGE, b"\x01" * 3)
        assert info.value.kind is ErrorKind.CERTIFICATE

    def test_inconsistent_private_key_is_internal(self, fixture_key: Jwk) -> None:
        data = fixture_key.to_dict()
        data["p"], data["q"] = data["q"], "AQAB"
        broken = Jwk.from_dict(data)
        with pytest.raises(JoseError) as info:
            broken.sign(MESSAGE)
        assert info.value == JoseError(ErrorKind.INTERNAL, "Sign message")

    def test_crt_members_derived_when_absent(self, fixture_key: Jwk) -> None:
        data = fixture_key.to_dict()
        for name in ("dp", "dq", "qi"):
            del data[name]
        key = Jwk.from_dict(data)
        assert key.sign(MESSAGE) == fixture_key.sign(MESSAGE)
