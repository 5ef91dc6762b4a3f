"""Identity-token decoding, signature verification and claim validation."""

import logging
import secrets
import time
from collections.abc import Callable, Iterable
from typing import NamedTuple

import jwt
from jwt.types import Options
from pydantic import ValidationError

from siwa.oidc.context import RequestContext
from siwa.oidc.errors import (
    ClaimError,
    ConfigurationError,
    SignatureError,
    TokenFormatError,
)
from siwa.oidc.key_store import KeyStore
from siwa.oidc.nonce import NonceManager
from siwa.oidc.types import IDTokenClaims

logger = logging.getLogger(__name__)

# Signature only; each claim is validated on its own in validate_claims.
_SIGNATURE_ONLY: Options = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class ClaimCheck(NamedTuple):
    """Result of a claim validation step."""

    claim: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.claim is None


PASSED = ClaimCheck()


def decode_id_token(raw: str) -> IDTokenClaims:
    """Parse header and claims without verifying the signature."""
    try:
        header = jwt.get_unverified_header(raw)
        body = jwt.decode(raw, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TokenFormatError(e) from e
    try:
        return IDTokenClaims.from_token(header, body)
    except ValidationError as e:
        raise TokenFormatError(e) from e


def check_iss(claims: IDTokenClaims, issuer: str) -> ClaimCheck:
    if claims.iss != issuer:
        return ClaimCheck("iss", f"unexpected issuer {claims.iss!r}")
    return PASSED


def check_aud(claims: IDTokenClaims, audiences: Iterable[str]) -> ClaimCheck:
    if claims.aud not in set(audiences):
        return ClaimCheck("aud", f"audience {claims.aud!r} is not authorized")
    return PASSED


def check_iat(claims: IDTokenClaims, now: int) -> ClaimCheck:
    if claims.iat > now:
        return ClaimCheck("iat", "issued in the future")
    return PASSED


def check_exp(claims: IDTokenClaims, now: int) -> ClaimCheck:
    if claims.exp < now:
        return ClaimCheck("exp", "token has expired")
    return PASSED


def check_nonce(claims: IDTokenClaims, expected: str | None) -> ClaimCheck:
    if claims.nonce is None or expected is None:
        return ClaimCheck("nonce", "nonce missing")
    if not secrets.compare_digest(claims.nonce, expected):
        return ClaimCheck("nonce", "nonce mismatch")
    return PASSED


def supports_nonce(claims: IDTokenClaims) -> bool:
    """Whether the token declares itself nonce-supporting."""
    return not (claims.nonce_supported is None or claims.nonce_supported is False)


class IDTokenVerifier:
    """Takes a raw identity token to Verified or Rejected.

    Steps run strictly in order: decode, key resolution, signature, claims.
    """

    def __init__(
        self,
        *,
        issuer: str,
        audiences: Iterable[str],
        key_store: KeyStore,
        nonce_manager: NonceManager,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._issuer = issuer
        self._audiences = frozenset(audiences)
        self._key_store = key_store
        self._nonce_manager = nonce_manager
        self._clock = clock

    async def verify(self, raw: str, ctx: RequestContext) -> IDTokenClaims:
        """Verify ``raw`` end to end and return its claims."""
        claims = decode_id_token(raw)
        key = await self._key_store.fetch(claims.kid)

        try:
            jwt.decode(
                raw, key.key, algorithms=[key.algorithm], options=_SIGNATURE_ONLY
            )
        except jwt.PyJWTError as e:
            logger.warning("Identity token signature rejected (kid=%s)", claims.kid)
            raise SignatureError(e) from e

        result = self.validate_claims(claims, ctx)
        if not result.ok:
            logger.warning(
                "Identity token claim rejected: %s (%s)", result.claim, result.reason
            )
            raise ClaimError(result.claim or "", result.reason)
        return claims

    def validate_claims(self, claims: IDTokenClaims, ctx: RequestContext) -> ClaimCheck:
        """Run each claim check and return the first failure, or ``PASSED``."""
        now = int(self._clock())
        for check in (
            lambda: check_iss(claims, self._issuer),
            lambda: check_aud(claims, self._audiences),
            lambda: check_iat(claims, now),
            lambda: check_exp(claims, now),
        ):
            result = check()
            if not result.ok:
                return result

        if supports_nonce(claims):
            lookup = self._nonce_manager.retrieve_for_verification(ctx)
            if not lookup.required:
                raise ConfigurationError(
                    "token requires nonce verification but nonce mode is 'ignore'"
                )
            return check_nonce(claims, lookup.value)
        return PASSED
