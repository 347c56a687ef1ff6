import os
from typing import List


class EnvironmentVariables:
    """
    Typed accessors for the environment variables read by jwksauthlib.

    Every property reads os.environ at access time so tests can patch the
    environment after construction. Defaults live in JwksAuthConfig, so
    unset variables come back as None here.
    """

    @property
    def issuer(self) -> str | None:
        return os.environ.get("JWKS_AUTH_ISSUER") or None

    @property
    def audience(self) -> str | None:
        return os.environ.get("JWKS_AUTH_AUDIENCE") or None

    @property
    def allowed_roles(self) -> List[str] | None:
        value = os.environ.get("JWKS_AUTH_ALLOWED_ROLES")
        if value is None:
            return None
        return [role.strip() for role in value.split(",") if role.strip()]

    @property
    def jwks_uri(self) -> str | None:
        return os.environ.get("JWKS_AUTH_JWKS_URI") or None

    @property
    def key_set_cache_ttl_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_KEY_SET_CACHE_TTL_SECONDS")

    @property
    def forced_refresh_cooldown_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_FORCED_REFRESH_COOLDOWN_SECONDS")

    @property
    def validation_cache_ttl_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_VALIDATION_CACHE_TTL_SECONDS")

    @property
    def validation_cache_max_entries(self) -> str | None:
        return os.environ.get("JWKS_AUTH_VALIDATION_CACHE_MAX_ENTRIES")

    @property
    def fetch_retry_attempts(self) -> str | None:
        return os.environ.get("JWKS_AUTH_FETCH_RETRY_ATTEMPTS")

    @property
    def fetch_retry_delay_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_FETCH_RETRY_DELAY_SECONDS")

    @property
    def fetch_retry_max_delay_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_FETCH_RETRY_MAX_DELAY_SECONDS")

    @property
    def fetch_timeout_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_FETCH_TIMEOUT_SECONDS")

    @property
    def clock_skew_leeway_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_CLOCK_SKEW_LEEWAY_SECONDS")

    @property
    def issued_at_future_tolerance_seconds(self) -> str | None:
        return os.environ.get("JWKS_AUTH_ISSUED_AT_FUTURE_TOLERANCE_SECONDS")
