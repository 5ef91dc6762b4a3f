"""Short-lived ES256 client-secret assertions for the token endpoint."""

import time
from collections.abc import Callable

import jwt
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey

from siwa.crypto.keys import load_ec_private_key
from siwa.oidc.errors import ConfigurationError
from siwa.oidc.types import CLIENT_SECRET_TTL_SECONDS, AdapterConfig

CLIENT_SECRET_ALGORITHM = "ES256"


class ClientSecretIssuer:
    """Mints the signed assertion Apple accepts in place of a static secret.

    A new assertion is produced for every token exchange; nothing is cached
    except the parsed private key.
    """

    def __init__(
        self,
        config: AdapterConfig,
        *,
        ttl_seconds: int = CLIENT_SECRET_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._ttl = ttl_seconds
        self._clock = clock
        self._private_key: EllipticCurvePrivateKey | None = None

    def _signing_key(self) -> EllipticCurvePrivateKey:
        if self._private_key is None:
            if not self._config.private_key_pem:
                raise ConfigurationError("no private key configured")
            try:
                self._private_key = load_ec_private_key(self._config.private_key_pem)
            except ValueError as e:
                raise ConfigurationError(e) from e
        return self._private_key

    def issue(self) -> str:
        """Create a signed assertion valid for ``ttl_seconds``."""
        key = self._signing_key()
        now = int(self._clock())
        payload = {
            "iss": self._config.team_id,
            "aud": self._config.issuer,
            "sub": self._config.client_id,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(
            payload,
            key,
            algorithm=CLIENT_SECRET_ALGORITHM,
            headers={"kid": self._config.key_id},
        )
