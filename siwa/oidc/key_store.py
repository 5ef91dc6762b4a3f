"""Fetching and caching of the provider's identity-token signing keys."""

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

import httpx
import jwt

from siwa.crypto.types import SigningKey
from siwa.oidc.errors import KeyFetchError

logger = logging.getLogger(__name__)


class KeyStore:
    """Signing keys indexed by ``kid``.

    Entries never expire; a lookup miss refetches the whole key set and
    replaces the index in one step. Concurrent refreshes may both hit the
    network; the last one to finish wins.
    """

    def __init__(
        self,
        jwks_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._jwks_url = jwks_url
        self._timeout = timeout
        self._transport = transport
        self._keys: Mapping[str, SigningKey] = MappingProxyType({})
        self._lock = threading.Lock()

    @property
    def cached_kids(self) -> frozenset[str]:
        return frozenset(self._keys)

    async def fetch(self, kid: str) -> SigningKey:
        """Return the key for ``kid``, refreshing the key set on a miss."""
        key = self._keys.get(kid)
        if key is not None:
            return key

        keys = await self._load()
        with self._lock:
            self._keys = MappingProxyType(keys)

        key = keys.get(kid)
        if key is None:
            logger.warning("Signing key %s not in published key set", kid)
            raise KeyFetchError(f"kid {kid!r} not found in key set")
        return key

    async def _load(self) -> dict[str, SigningKey]:
        """Download and parse the full key set."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self._jwks_url)
                response.raise_for_status()
                document = response.json()
            if not isinstance(document, dict):
                raise ValueError("key set document is not a JSON object")
            jwk_set = jwt.PyJWKSet.from_dict(document)
        except (httpx.HTTPError, ValueError, jwt.PyJWTError) as e:
            logger.warning("Signing key set fetch failed: %s", e)
            raise KeyFetchError(e) from e

        keys = {
            jwk.key_id: SigningKey(
                kid=jwk.key_id, algorithm=jwk.algorithm_name, key=jwk.key
            )
            for jwk in jwk_set.keys
            if jwk.key_id
        }
        logger.info("Signing key set refreshed (%d keys)", len(keys))
        return keys
