from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_AUDIENCE = "authenticated"
DEFAULT_ALLOWED_ROLES = ("authenticated", "anon")
JWKS_WELL_KNOWN_PATH = "/.well-known/jwks.json"


class JwksAuthConfig(BaseModel):
    """
    Settings consumed by the verification subsystem.

    jwks_uri defaults to the issuer's well-known key-set path when not given.
    """

    model_config = ConfigDict(frozen=True)

    issuer: str = Field(min_length=1)
    audience: str = Field(default=DEFAULT_AUDIENCE, min_length=1)
    allowed_roles: tuple[str, ...] = DEFAULT_ALLOWED_ROLES
    jwks_uri: str = Field(min_length=1)
    key_set_cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    forced_refresh_cooldown_seconds: float = Field(default=10.0, ge=0)
    validation_cache_ttl_seconds: float = Field(default=300.0, gt=0)
    validation_cache_max_entries: int = Field(default=10000, gt=0)
    fetch_retry_attempts: int = Field(default=3, ge=1)
    fetch_retry_delay_seconds: float = Field(default=1.0, ge=0)
    fetch_retry_max_delay_seconds: float = Field(default=30.0, ge=0)
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    fetch_connect_timeout_seconds: float = Field(default=10.0, gt=0)
    clock_skew_leeway_seconds: int = Field(default=30, ge=0)
    issued_at_future_tolerance_seconds: int = Field(default=300, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _default_jwks_uri(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("jwks_uri") and data.get("issuer"):
            data = {
                **data,
                "jwks_uri": str(data["issuer"]).rstrip("/") + JWKS_WELL_KNOWN_PATH,
            }
        return data
