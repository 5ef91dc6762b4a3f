"""Nonce issuance and retrieval for replay protection."""

import secrets
from typing import NamedTuple

from siwa.oidc.context import RequestContext
from siwa.oidc.errors import ConfigurationError
from siwa.oidc.types import NonceMode

NONCE_SESSION_KEY = "siwa.nonce"
NONCE_BYTES = 16


class NonceLookup(NamedTuple):
    """Expected nonce for verification; ``required`` is False in ignore mode."""

    required: bool
    value: str | None = None


def generate_nonce() -> str:
    """Generate a base64url nonce with 16 bytes of entropy."""
    return secrets.token_urlsafe(NONCE_BYTES)


class NonceManager:
    """Binds a one-time value to an authentication attempt."""

    def __init__(self, mode: str) -> None:
        self._mode = mode

    @property
    def mode(self) -> NonceMode:
        try:
            return NonceMode(self._mode)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid nonce option: {self._mode!r}. "
                "Must be 'session', 'param', or 'ignore'"
            ) from e

    def issue(self, ctx: RequestContext) -> str:
        """Generate a nonce, storing it in the session in session mode."""
        mode = self.mode
        nonce = generate_nonce()
        if mode is NonceMode.SESSION:
            ctx.session.set(NONCE_SESSION_KEY, nonce)
        return nonce

    def retrieve_for_verification(self, ctx: RequestContext) -> NonceLookup:
        """Return the expected nonce; session mode consumes it."""
        mode = self.mode
        if mode is NonceMode.SESSION:
            return NonceLookup(True, ctx.session.delete(NONCE_SESSION_KEY))
        if mode is NonceMode.PARAM:
            return NonceLookup(True, ctx.params.get("nonce"))
        return NonceLookup(False)
