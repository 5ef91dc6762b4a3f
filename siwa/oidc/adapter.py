"""Sign in with Apple orchestration: authorization request and callback."""

import logging
import time
from collections.abc import Callable

from siwa.crypto.client_secret import ClientSecretIssuer
from siwa.oidc.callback import CallbackNormalizer, callback_url
from siwa.oidc.context import RequestContext
from siwa.oidc.errors import CallbackError, TokenFormatError
from siwa.oidc.id_token import IDTokenVerifier
from siwa.oidc.key_store import KeyStore
from siwa.oidc.nonce import NonceManager
from siwa.oidc.oauth2_client import HttpxOAuth2Client, OAuth2Client
from siwa.oidc.profile import ProfileAssembler
from siwa.oidc.types import (
    AdapterConfig,
    CallbackRedirect,
    CallbackResult,
    IDTokenClaims,
)

logger = logging.getLogger(__name__)


class AppleAuthAdapter:
    """Wires nonce, client secret, key store and verifier into the two flows.

    ``key_store`` may be shared between adapters; everything else is owned
    by the adapter.
    """

    def __init__(
        self,
        config: AdapterConfig,
        *,
        key_store: KeyStore | None = None,
        oauth2_client: OAuth2Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        options = config.client_options
        self.key_store = key_store or KeyStore(
            options.absolute(options.jwks_url), timeout=config.http_timeout
        )
        self.oauth2_client: OAuth2Client = oauth2_client or HttpxOAuth2Client(
            options, timeout=config.http_timeout
        )
        self.nonces = NonceManager(config.nonce_mode)
        self.client_secrets = ClientSecretIssuer(config, clock=clock)
        self.normalizer = CallbackNormalizer(config)
        self.verifier = IDTokenVerifier(
            issuer=config.issuer,
            audiences=config.audiences,
            key_store=self.key_store,
            nonce_manager=self.nonces,
            clock=clock,
        )
        self.profiles = ProfileAssembler()

    def build_authorization_request(
        self, ctx: RequestContext, params: dict[str, str] | None = None
    ) -> dict[str, str]:
        """Authorize parameters with a freshly issued nonce merged in."""
        request = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": callback_url(self.config, ctx),
            **self.config.authorize_params.model_dump(),
            **(params or {}),
        }
        request["nonce"] = self.nonces.issue(ctx)
        return request

    def authorize_url(
        self, ctx: RequestContext, params: dict[str, str] | None = None
    ) -> str:
        return self.oauth2_client.build_authorize_url(
            self.build_authorization_request(ctx, params)
        )

    async def handle_callback(
        self, ctx: RequestContext
    ) -> CallbackRedirect | CallbackResult:
        """Handle either callback leg.

        The POST leg yields a redirect; the GET leg exchanges the code,
        verifies the identity token and yields the profile.
        """
        redirect = self.normalizer.normalize(ctx)
        if redirect is not None:
            return redirect

        error = ctx.params.get("error")
        if error:
            raise CallbackError(ctx.params.get("error_description"), kind=error)
        code = ctx.params.get("code")
        if not code:
            raise CallbackError("missing authorization code", kind="invalid_request")

        id_token = ctx.params.get("id_token")
        claims: IDTokenClaims | None = None
        if id_token:
            claims = await self.verifier.verify(id_token, ctx)

        credentials = await self.oauth2_client.exchange_code(
            code,
            redirect_uri=callback_url(self.config, ctx),
            client_id=self.effective_client_id(claims),
            client_secret=self.client_secrets.issue(),
        )

        if claims is None:
            id_token = credentials.id_token
            if not id_token:
                raise TokenFormatError("missing id_token")
            claims = await self.verifier.verify(id_token, ctx)

        profile, extra = self.profiles.assemble(claims, ctx, id_token)
        logger.info("Apple sign-in verified for aud=%s", claims.aud)
        return CallbackResult(
            uid=claims.sub,
            info=self.profiles.info(profile),
            extra=extra,
            credentials=credentials,
        )

    def effective_client_id(self, claims: IDTokenClaims | None) -> str:
        """Client id to present to the token endpoint.

        Once an identity token has been verified its audience is used, so a
        token minted for an additional authorized client is exchanged as that
        client.
        """
        if claims is None:
            return self.config.client_id
        if claims.aud not in self.config.audiences:
            raise CallbackError(f"unauthorized audience {claims.aud!r}")
        return claims.aud
