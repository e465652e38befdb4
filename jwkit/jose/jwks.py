"""JSON Web Key Set (RFC 7517 section 5) and a refreshable key set."""

import asyncio
from collections.abc import Iterable
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from jwkit.core.settings import JwksSettings
from jwkit.crypto.jwk import Jwk
from jwkit.errors import ErrorKind, JoseError


class JwkSet(BaseModel):
    """JWKS document. Entries stay raw so one unusable key cannot sink the set."""

    keys: list[dict[str, Any]]


def load_keys(entries: Iterable[dict[str, Any]]) -> tuple[Jwk, ...]:
    """Parse JWKS entries, skipping keys this library cannot use."""
    usable: list[Jwk] = []
    for entry in entries:
        try:
            usable.append(Jwk.from_dict(entry))
        except JoseError:
            logger.warning(
                "Skipping unusable JWKS entry kid={} kty={}",
                entry.get("kid"),
                entry.get("kty"),
            )
    return tuple(usable)


class KeySet:
    """Named collection of JWKs fetched from ``url`` and selected by ``kid``.

    ``refresh`` swaps the whole key tuple in a single assignment, so a
    concurrent ``select`` sees either the old set or the new one.
    """

    def __init__(
        self,
        url: str,
        keys: Iterable[Jwk] = (),
        *,
        settings: JwksSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._settings = settings or JwksSettings()
        self._transport = transport
        self._keys: tuple[Jwk, ...] = tuple(keys)
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_json(
        cls,
        url: str,
        document: str | bytes,
        *,
        settings: JwksSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "KeySet":
        """Build a key set from an already-fetched JWKS document."""
        try:
            parsed = JwkSet.model_validate_json(document)
        except ValidationError as exc:
            raise JoseError(ErrorKind.INVALID, "Failed to decode key set") from exc
        return cls(url, load_keys(parsed.keys), settings=settings, transport=transport)

    @property
    def keys(self) -> tuple[Jwk, ...]:
        return self._keys

    def select(self, kid: str | None) -> Jwk:
        """Return the key whose ``kid`` matches.

        Without a ``kid`` the key is only unambiguous when the set holds a
        single key.
        """
        keys = self._keys
        if kid is None:
            if len(keys) == 1:
                return keys[0]
        else:
            for key in keys:
                if key.kid == kid:
                    return key
        raise JoseError(ErrorKind.KEY, "No key matches kid")

    async def refresh(self) -> None:
        """Fetch ``url`` and replace the in-memory keys on success."""
        async with self._refresh_lock:
            document = await self._fetch()
            keys = load_keys(document.keys)
            self._keys = keys
            logger.info("Refreshed key set url={} keys={}", self.url, len(keys))

    async def _fetch(self) -> JwkSet:
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                headers={"User-Agent": self._settings.user_agent},
                transport=self._transport,
            ) as client:
                resp = await client.get(self.url)
                resp.raise_for_status()
                return JwkSet.model_validate_json(resp.content)
        except (httpx.HTTPError, ValidationError) as exc:
            logger.error("Failed to fetch key set url={}: {}", self.url, exc)
            raise JoseError(ErrorKind.CONNECTION, "Failed to fetch key set") from exc

    def public_document(self) -> JwkSet:
        """JWKS document with private members stripped, ready to publish."""
        return JwkSet(keys=[key.public().to_dict() for key in self._keys])
