import logging
from typing import Any, Dict

from jwksauthlib.auth.config.jwks_auth_config import JwksAuthConfig
from jwksauthlib.utilities.environment.environment_variables import (
    EnvironmentVariables,
)
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["INITIALIZATION"])


class JwksAuthConfigReader:
    """
    Builds a JwksAuthConfig from EnvironmentVariables.

    Only variables that are actually set are passed on, so unset ones fall back
    to the defaults declared on the model.
    """

    def __init__(self, *, environment_variables: EnvironmentVariables) -> None:
        self.environment_variables: EnvironmentVariables = environment_variables
        if self.environment_variables is None:
            raise ValueError("EnvironmentVariables must be provided")
        if not isinstance(self.environment_variables, EnvironmentVariables):
            raise TypeError(
                "environment_variables must be an instance of EnvironmentVariables"
            )

    def read_config(self) -> JwksAuthConfig:
        env = self.environment_variables
        issuer = env.issuer
        if not issuer:
            raise ValueError("JWKS_AUTH_ISSUER environment variable is not set")

        values: Dict[str, Any] = {
            "issuer": issuer,
            "audience": env.audience,
            "allowed_roles": env.allowed_roles,
            "jwks_uri": env.jwks_uri,
            "key_set_cache_ttl_seconds": env.key_set_cache_ttl_seconds,
            "forced_refresh_cooldown_seconds": env.forced_refresh_cooldown_seconds,
            "validation_cache_ttl_seconds": env.validation_cache_ttl_seconds,
            "validation_cache_max_entries": env.validation_cache_max_entries,
            "fetch_retry_attempts": env.fetch_retry_attempts,
            "fetch_retry_delay_seconds": env.fetch_retry_delay_seconds,
            "fetch_retry_max_delay_seconds": env.fetch_retry_max_delay_seconds,
            "fetch_timeout_seconds": env.fetch_timeout_seconds,
            "clock_skew_leeway_seconds": env.clock_skew_leeway_seconds,
            "issued_at_future_tolerance_seconds": env.issued_at_future_tolerance_seconds,
        }
        config = JwksAuthConfig.model_validate(
            {key: value for key, value in values.items() if value is not None}
        )
        logger.info(
            f"Loaded JWKS auth config: issuer={config.issuer}, audience={config.audience}, "
            f"jwks_uri={config.jwks_uri}, allowed_roles={list(config.allowed_roles)}"
        )
        return config
