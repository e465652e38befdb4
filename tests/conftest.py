"""Shared test fixtures for jwkit."""

from pathlib import Path

import pytest

from jwkit.crypto.jwk import Jwk
from jwkit.crypto.keys import generate_rsa_jwk

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings independent of the developer's environment."""
    for name in (
        "JWKIT_CLAIMS_ISSUER",
        "JWKIT_CLAIMS_AUDIENCE",
        "JWKIT_CLAIMS_LEEWAY_SECONDS",
        "JWKIT_JWKS_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def fixture_key_json() -> str:
    """The 2048-bit private RS256 test key, as JSON text."""
    return (FIXTURES / "rs256_2048_private_key.json").read_text()


@pytest.fixture(scope="session")
def fixture_key(fixture_key_json: str) -> Jwk:
    """The 2048-bit private RS256 test key (kid ``test``)."""
    return Jwk.parse(fixture_key_json)


@pytest.fixture(scope="session")
def private_jwk() -> Jwk:
    """A freshly generated private key, shared across the session."""
    return generate_rsa_jwk(kid="session-key")


@pytest.fixture(scope="session")
def other_jwk() -> Jwk:
    """A second, unrelated private key."""
    return generate_rsa_jwk(kid="other-key")
