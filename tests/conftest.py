"""Shared test fixtures for the Sign in with Apple adapter."""

import time
from collections.abc import Callable
from typing import Any, NamedTuple
from urllib.parse import parse_qsl

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.algorithms import RSAAlgorithm
from uuid_utils import uuid7

from siwa.oidc.adapter import AppleAuthAdapter
from siwa.oidc.key_store import KeyStore
from siwa.oidc.oauth2_client import HttpxOAuth2Client
from siwa.oidc.types import APPLE_ISSUER, AdapterConfig

CLIENT_ID = "com.example.web"
IOS_CLIENT_ID = "com.example.ios"
TEAM_ID = "TEAM123456"
KEY_ID = "KEY7654321"
JWKS_URL = f"{APPLE_ISSUER}/auth/keys"


class KeyPair(NamedTuple):
    """PEM-encoded test keypair with its key id."""

    kid: str
    private_key_pem: str
    public_key_pem: str


def _to_pair(private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> KeyPair:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return KeyPair(str(uuid7()), private_pem, public_pem)


def _rsa_pair() -> KeyPair:
    return _to_pair(rsa.generate_private_key(public_exponent=65537, key_size=2048))


def _ec_pair() -> KeyPair:
    return _to_pair(ec.generate_private_key(ec.SECP256R1()))


def _rsa_jwk(pair: KeyPair) -> dict[str, Any]:
    public_key = serialization.load_pem_public_key(pair.public_key_pem.encode())
    jwk = RSAAlgorithm.to_jwk(public_key, as_dict=True)
    jwk.update(kid=pair.kid, alg="RS256", use="sig")
    return jwk


class FakeApple:
    """Serves a key set and a token endpoint through httpx.MockTransport."""

    def __init__(self, jwks: dict[str, Any]) -> None:
        self.jwks = jwks
        self.jwks_status = 200
        self.jwks_calls = 0
        self.token_status = 200
        self.token_body: dict[str, Any] = {"access_token": "at-1", "token_type": "Bearer"}
        self.token_requests: list[dict[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/keys":
            self.jwks_calls += 1
            return httpx.Response(self.jwks_status, json=self.jwks)
        if request.url.path == "/auth/token":
            form = dict(parse_qsl(request.content.decode()))
            form["authorization"] = request.headers.get("authorization", "")
            self.token_requests.append(form)
            return httpx.Response(self.token_status, json=self.token_body)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("APPLE_CLIENT_ID", CLIENT_ID)
    monkeypatch.setenv("APPLE_SESSION_SECRET", "test-session-secret")


@pytest.fixture
def make_rsa_key() -> Callable[[], KeyPair]:
    """Factory for fresh RSA keypairs (rotations, forgeries)."""
    return _rsa_pair


@pytest.fixture
def make_jwk() -> Callable[[KeyPair], dict[str, Any]]:
    """Converts an RSA keypair into a published JWK entry."""
    return _rsa_jwk


@pytest.fixture(scope="session")
def rsa_key() -> KeyPair:
    """Provider identity-token signing key."""
    return _rsa_pair()


@pytest.fixture(scope="session")
def ec_key() -> KeyPair:
    """Developer key used for client-secret assertions."""
    return _ec_pair()


@pytest.fixture
def jwks_document(rsa_key: KeyPair) -> dict[str, Any]:
    return {"keys": [_rsa_jwk(rsa_key)]}


@pytest.fixture
def fake_apple(jwks_document: dict[str, Any]) -> FakeApple:
    return FakeApple(jwks_document)


@pytest.fixture
def config(ec_key: KeyPair) -> AdapterConfig:
    return AdapterConfig(
        client_id=CLIENT_ID,
        team_id=TEAM_ID,
        key_id=KEY_ID,
        private_key_pem=ec_key.private_key_pem,
        authorized_client_ids=frozenset({IOS_CLIENT_ID}),
    )


@pytest.fixture
def key_store(fake_apple: FakeApple) -> KeyStore:
    return KeyStore(JWKS_URL, transport=fake_apple.transport)


@pytest.fixture
def adapter(
    config: AdapterConfig, key_store: KeyStore, fake_apple: FakeApple
) -> AppleAuthAdapter:
    return AppleAuthAdapter(
        config,
        key_store=key_store,
        oauth2_client=HttpxOAuth2Client(
            config.client_options, transport=fake_apple.transport
        ),
    )


@pytest.fixture
def make_id_token(rsa_key: KeyPair) -> Callable[..., str]:
    """Factory for provider-signed identity tokens.

    Keyword arguments override claims; passing None removes a claim.
    """

    def _make(
        *,
        key: KeyPair | None = None,
        kid: str | None = None,
        **claims: Any,
    ) -> str:
        signer = key or rsa_key
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": APPLE_ISSUER,
            "aud": CLIENT_ID,
            "sub": "001234.abcdef",
            "iat": now - 10,
            "exp": now + 600,
            "email": "ada@example.com",
            "email_verified": "true",
            "is_private_email": False,
        }
        payload.update(claims)
        payload = {k: v for k, v in payload.items() if v is not None}
        return jwt.encode(
            payload,
            signer.private_key_pem,
            algorithm="RS256",
            headers={"kid": kid or signer.kid},
        )

    return _make
