import pytest
from pydantic import ValidationError

from jwksauthlib.auth.config.jwks_auth_config import JwksAuthConfig
from jwksauthlib.auth.config.jwks_auth_config_reader import JwksAuthConfigReader
from jwksauthlib.utilities.environment.environment_variables import (
    EnvironmentVariables,
)

ENVIRONMENT_VARIABLE_NAMES = [
    "JWKS_AUTH_ISSUER",
    "JWKS_AUTH_AUDIENCE",
    "JWKS_AUTH_ALLOWED_ROLES",
    "JWKS_AUTH_JWKS_URI",
    "JWKS_AUTH_KEY_SET_CACHE_TTL_SECONDS",
    "JWKS_AUTH_FORCED_REFRESH_COOLDOWN_SECONDS",
    "JWKS_AUTH_VALIDATION_CACHE_TTL_SECONDS",
    "JWKS_AUTH_VALIDATION_CACHE_MAX_ENTRIES",
    "JWKS_AUTH_FETCH_RETRY_ATTEMPTS",
    "JWKS_AUTH_FETCH_RETRY_DELAY_SECONDS",
    "JWKS_AUTH_FETCH_RETRY_MAX_DELAY_SECONDS",
    "JWKS_AUTH_FETCH_TIMEOUT_SECONDS",
    "JWKS_AUTH_CLOCK_SKEW_LEEWAY_SECONDS",
    "JWKS_AUTH_ISSUED_AT_FUTURE_TOLERANCE_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENVIRONMENT_VARIABLE_NAMES:
        monkeypatch.delenv(name, raising=False)


def make_reader() -> JwksAuthConfigReader:
    return JwksAuthConfigReader(environment_variables=EnvironmentVariables())


def test_read_config_applies_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWKS_AUTH_ISSUER", "https://idp.example/auth/")

    config = make_reader().read_config()

    assert config.issuer == "https://idp.example/auth/"
    assert config.audience == "authenticated"
    assert config.allowed_roles == ("authenticated", "anon")
    assert config.jwks_uri == "https://idp.example/auth/.well-known/jwks.json"
    assert config.key_set_cache_ttl_seconds == 3600
    assert config.forced_refresh_cooldown_seconds == 10.0
    assert config.validation_cache_ttl_seconds == 300
    assert config.fetch_retry_attempts == 3
    assert config.fetch_retry_delay_seconds == 1.0
    assert config.clock_skew_leeway_seconds == 30
    assert config.issued_at_future_tolerance_seconds == 300


def test_read_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWKS_AUTH_ISSUER", "https://idp.example/auth")
    monkeypatch.setenv("JWKS_AUTH_AUDIENCE", "api")
    monkeypatch.setenv("JWKS_AUTH_ALLOWED_ROLES", "authenticated, admin ,")
    monkeypatch.setenv("JWKS_AUTH_JWKS_URI", "https://keys.example/jwks")
    monkeypatch.setenv("JWKS_AUTH_KEY_SET_CACHE_TTL_SECONDS", "600")
    monkeypatch.setenv("JWKS_AUTH_FORCED_REFRESH_COOLDOWN_SECONDS", "2.5")
    monkeypatch.setenv("JWKS_AUTH_FETCH_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("JWKS_AUTH_FETCH_RETRY_DELAY_SECONDS", "0.25")

    config = make_reader().read_config()

    assert config.audience == "api"
    assert config.allowed_roles == ("authenticated", "admin")
    assert config.jwks_uri == "https://keys.example/jwks"
    assert config.key_set_cache_ttl_seconds == 600
    assert config.forced_refresh_cooldown_seconds == 2.5
    assert config.fetch_retry_attempts == 5
    assert config.fetch_retry_delay_seconds == 0.25


def test_read_config_requires_issuer() -> None:
    with pytest.raises(ValueError, match="JWKS_AUTH_ISSUER"):
        make_reader().read_config()


def test_read_config_rejects_invalid_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWKS_AUTH_ISSUER", "https://idp.example/auth")
    monkeypatch.setenv("JWKS_AUTH_FETCH_RETRY_ATTEMPTS", "0")

    with pytest.raises(ValidationError):
        make_reader().read_config()


def test_config_is_immutable() -> None:
    config = JwksAuthConfig(issuer="https://idp.example/auth")
    with pytest.raises(ValidationError):
        config.issuer = "https://other.example"  # type: ignore[misc]


def test_reader_requires_environment_variables() -> None:
    with pytest.raises(ValueError):
        JwksAuthConfigReader(environment_variables=None)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        JwksAuthConfigReader(environment_variables=object())  # type: ignore[arg-type]
