import pytest

from jwksauthlib.auth.bearer_token_authenticator import BearerTokenAuthenticator
from jwksauthlib.auth.config.jwks_auth_config import JwksAuthConfig
from jwksauthlib.auth.jwks.jwks_fetcher import JwksFetcher
from jwksauthlib.auth.jwks.jwks_key_set_cache import JwksKeySetCache
from jwksauthlib.auth.token_verifier import TokenVerifier
from jwksauthlib.container.container_factory import ContainerFactory


@pytest.fixture
def issuer_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWKS_AUTH_ISSUER", "https://idp.example/auth")
    monkeypatch.setenv("JWKS_AUTH_FETCH_RETRY_ATTEMPTS", "4")
    monkeypatch.setenv("JWKS_AUTH_CLOCK_SKEW_LEEWAY_SECONDS", "10")
    monkeypatch.delenv("JWKS_AUTH_JWKS_URI", raising=False)


def test_create_container_wires_authenticator(issuer_environment: None) -> None:
    container = ContainerFactory().create_container()

    authenticator = container.resolve(BearerTokenAuthenticator)
    config = container.resolve(JwksAuthConfig)
    fetcher = container.resolve(JwksFetcher)
    verifier = container.resolve(TokenVerifier)

    assert authenticator is container.resolve(BearerTokenAuthenticator)
    assert authenticator.key_set_cache is container.resolve(JwksKeySetCache)
    assert authenticator.token_verifier is verifier
    assert verifier.key_set_cache is authenticator.key_set_cache
    assert fetcher.jwks_uri == config.jwks_uri
    assert fetcher.jwks_uri == "https://idp.example/auth/.well-known/jwks.json"
    assert fetcher.max_attempts == 4
    assert verifier.leeway_seconds == 10
    assert verifier.issuer == "https://idp.example/auth"


def test_create_container_fails_without_issuer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JWKS_AUTH_ISSUER", raising=False)
    container = ContainerFactory().create_container()

    with pytest.raises(ValueError):
        container.resolve(BearerTokenAuthenticator)
