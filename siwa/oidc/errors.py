"""Callback failure taxonomy."""


class CallbackError(Exception):
    """Authentication failure carrying a machine-readable kind and its cause."""

    kind = "invalid_credentials"

    def __init__(
        self,
        cause: BaseException | str | None = None,
        *,
        kind: str | None = None,
    ) -> None:
        if kind is not None:
            self.kind = kind
        self.cause = cause
        message = self.kind if cause is None else f"{self.kind}: {cause}"
        super().__init__(message)


class ConfigurationError(CallbackError):
    """The adapter is configured in a way that cannot work."""

    kind = "invalid_configuration"


class KeyFetchError(CallbackError):
    """The provider's signing key could not be obtained."""

    kind = "jwks_fetching_failed"


class SignatureError(CallbackError):
    """The identity token's signature does not verify."""

    kind = "id_token_signature_invalid"


class ClaimError(CallbackError):
    """A single identity-token claim failed validation."""

    kind = "id_token_claims_invalid"

    def __init__(self, claim: str, reason: str | None = None) -> None:
        self.claim = claim
        super().__init__(reason or f"{claim} invalid")


class TokenFormatError(CallbackError):
    """The identity token could not be decoded at all."""

    kind = "id_token_format_invalid"


class TokenExchangeError(CallbackError):
    """The token endpoint rejected the authorization code exchange."""

    kind = "token_exchange_failed"
