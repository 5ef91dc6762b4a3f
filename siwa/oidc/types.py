"""Type definitions for the Sign in with Apple flow."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

APPLE_ISSUER = "https://appleid.apple.com"
CALLBACK_PATH = "/auth/apple/callback"
CLIENT_SECRET_TTL_SECONDS = 60


class NonceMode(StrEnum):
    """Where the nonce is kept between the authorize request and the callback."""

    SESSION = "session"
    PARAM = "param"
    IGNORE = "ignore"


class ClientOptions(BaseModel):
    """Provider endpoints and client authentication scheme."""

    model_config = ConfigDict(frozen=True)

    site: str = APPLE_ISSUER
    authorize_url: str = "/auth/authorize"
    token_url: str = "/auth/token"
    jwks_url: str = "/auth/keys"
    auth_scheme: str = "request_body"

    def absolute(self, path: str) -> str:
        """Resolve an endpoint path against the site root."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.site.rstrip('/')}/{path.lstrip('/')}"


class AuthorizeParams(BaseModel):
    """Default parameters sent with every authorization request."""

    model_config = ConfigDict(frozen=True)

    response_mode: str = "form_post"
    scope: str = "email name"


class AdapterConfig(BaseModel):
    """Immutable adapter configuration."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    team_id: str = ""
    key_id: str = ""
    private_key_pem: str = Field(default="", repr=False)
    authorized_client_ids: frozenset[str] = frozenset()
    nonce_mode: str = NonceMode.SESSION
    issuer: str = APPLE_ISSUER
    redirect_uri: str | None = None
    callback_path: str = CALLBACK_PATH
    client_options: ClientOptions = ClientOptions()
    authorize_params: AuthorizeParams = AuthorizeParams()
    http_timeout: float = 10.0

    @property
    def audiences(self) -> frozenset[str]:
        """Every audience an identity token may be issued for."""
        return frozenset({self.client_id}) | self.authorized_client_ids


class IDTokenClaims(BaseModel):
    """Claims of a decoded identity token.

    ``kid`` comes from the token header; everything else from the body.
    Unknown claims are retained.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    kid: str
    sub: str
    iss: str
    aud: str
    iat: int
    exp: int
    nonce: str | None = None
    nonce_supported: Any = None
    email: str | None = None
    email_verified: Any = None
    is_private_email: Any = None

    _body: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_token(
        cls, header: dict[str, Any], body: dict[str, Any]
    ) -> "IDTokenClaims":
        """Build claims from an unverified header and body."""
        claims = cls.model_validate({**body, "kid": header.get("kid")})
        claims._body = dict(body)
        return claims

    @property
    def body(self) -> dict[str, Any]:
        """The token body exactly as it was signed."""
        return dict(self._body)


class UserInfoPayload(BaseModel):
    """Name data sent only on a user's first authorization."""

    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "UserInfoPayload":
        """Extract the name parts from the provider's ``user`` object."""
        name = raw.get("name")
        if not isinstance(name, dict):
            return cls()
        first, last = name.get("firstName"), name.get("lastName")
        return cls(
            first_name=first if isinstance(first, str) else None,
            last_name=last if isinstance(last, str) else None,
        )


class Profile(BaseModel):
    """Normalized user profile built from verified claims."""

    sub: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    name: str | None = None
    email_verified: bool = False
    is_private_email: bool = False


class TokenResponse(BaseModel):
    """OAuth token endpoint response."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None


class CallbackRedirect(BaseModel):
    """Instruction to redirect the browser and stop processing the request."""

    url: str
    drop_session: bool = True


class CallbackResult(BaseModel):
    """Outcome of a fully verified callback."""

    uid: str
    info: dict[str, Any]
    extra: dict[str, Any]
    credentials: TokenResponse | None = None
