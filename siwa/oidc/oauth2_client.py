"""Generic OAuth2 authorization-code client."""

import logging
from typing import Protocol
from urllib.parse import urlencode

import httpx

from siwa.oidc.errors import TokenExchangeError
from siwa.oidc.types import ClientOptions, TokenResponse

logger = logging.getLogger(__name__)

HTTP_OK = 200


class OAuth2Client(Protocol):
    """Authorize-URL construction and code exchange."""

    def build_authorize_url(self, params: dict[str, str]) -> str: ...

    async def exchange_code(
        self,
        code: str,
        *,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
    ) -> TokenResponse: ...


class HttpxOAuth2Client:
    """OAuth2 client talking to the provider over httpx."""

    def __init__(
        self,
        options: ClientOptions,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._options = options
        self._timeout = timeout
        self._transport = transport

    def build_authorize_url(self, params: dict[str, str]) -> str:
        url = self._options.absolute(self._options.authorize_url)
        return f"{url}?{urlencode(params)}"

    async def exchange_code(
        self,
        code: str,
        *,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
    ) -> TokenResponse:
        """POST the code to the token endpoint and parse the response."""
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        }
        auth: tuple[str, str] | None = None
        if self._options.auth_scheme == "basic_auth":
            auth = (client_id, client_secret)
        else:
            form["client_id"] = client_id
            form["client_secret"] = client_secret

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._options.absolute(self._options.token_url),
                    data=form,
                    auth=auth,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(e) from e

        if response.status_code != HTTP_OK:
            logger.warning("Token exchange failed with HTTP %d", response.status_code)
            raise TokenExchangeError(_error_description(response))
        try:
            return TokenResponse.model_validate(response.json())
        except ValueError as e:
            raise TokenExchangeError(e) from e


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return f"HTTP {response.status_code}"
    description = body.get("error_description") or body.get("error")
    return str(description or response.status_code)
