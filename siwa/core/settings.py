"""Adapter settings loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from siwa.oidc.types import (
    APPLE_ISSUER,
    AdapterConfig,
    AuthorizeParams,
    ClientOptions,
)

HTTP_TIMEOUT_DEFAULT = 10.0


class AppleSettings(BaseSettings):
    """Sign in with Apple settings."""

    model_config = SettingsConfigDict(env_prefix="APPLE_")

    client_id: str = ""
    team_id: str = ""
    key_id: str = ""
    private_key: str = ""
    private_key_path: str = ""
    authorized_client_ids: str = ""
    nonce: str = "session"
    redirect_uri: str | None = None
    scope: str = "email name"
    site: str = APPLE_ISSUER
    authorize_path: str = "/auth/authorize"
    token_path: str = "/auth/token"
    jwks_path: str = "/auth/keys"
    auth_scheme: str = "request_body"
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    session_secret: str = ""
    log_level: str = "INFO"

    def get_authorized_client_id_list(self) -> list[str]:
        """Parse comma-separated additional audiences."""
        if not self.authorized_client_ids:
            return []
        return [
            c.strip() for c in self.authorized_client_ids.split(",") if c.strip()
        ]

    def load_private_key_pem(self) -> str:
        """Return the signing key PEM, reading the key file when configured."""
        if self.private_key:
            return self.private_key.replace("\\n", "\n")
        if self.private_key_path:
            return Path(self.private_key_path).read_text()
        return ""

    def to_config(self) -> AdapterConfig:
        """Build the immutable adapter configuration."""
        site = self.site.rstrip("/")
        return AdapterConfig(
            client_id=self.client_id,
            team_id=self.team_id,
            key_id=self.key_id,
            private_key_pem=self.load_private_key_pem(),
            authorized_client_ids=frozenset(self.get_authorized_client_id_list()),
            nonce_mode=self.nonce,
            redirect_uri=self.redirect_uri or None,
            client_options=ClientOptions(
                site=site,
                authorize_url=self.authorize_path,
                token_url=self.token_path,
                jwks_url=self.jwks_path,
                auth_scheme=self.auth_scheme,
            ),
            authorize_params=AuthorizeParams(scope=self.scope),
            http_timeout=self.http_timeout,
        )
