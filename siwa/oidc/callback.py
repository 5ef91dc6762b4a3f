"""Rewrites Apple's form_post callback into a GET-style redirect."""

import logging
from urllib.parse import quote_plus

from siwa.oidc.context import RequestContext
from siwa.oidc.types import AdapterConfig, CallbackRedirect

logger = logging.getLogger(__name__)


def callback_url(config: AdapterConfig, ctx: RequestContext) -> str:
    """Callback location: explicit parameter, configured override, or default path."""
    return (
        ctx.params.get("redirect_uri")
        or config.redirect_uri
        or f"{ctx.full_host.rstrip('/')}{config.callback_path}"
    )


class CallbackNormalizer:
    """Detects the POST callback leg and turns it into a redirect."""

    def __init__(self, config: AdapterConfig) -> None:
        self._config = config

    def normalize(self, ctx: RequestContext) -> CallbackRedirect | None:
        """Return a redirect for the POST leg, or None to continue processing."""
        if ctx.method.upper() != "POST":
            return None

        url = callback_url(self._config, ctx)
        code, state = ctx.params.get("code"), ctx.params.get("state")
        if code and state:
            url += f"?code={quote_plus(code)}&state={quote_plus(state)}"
            user = ctx.params.get("user")
            if user:
                url += f"&user={quote_plus(user)}"

        logger.debug("Rewrote form_post callback to GET redirect")
        return CallbackRedirect(url=url, drop_session=True)
