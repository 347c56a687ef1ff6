import logging

from jwksauthlib.auth.bearer_token_authenticator import BearerTokenAuthenticator
from jwksauthlib.auth.config.jwks_auth_config import JwksAuthConfig
from jwksauthlib.auth.config.jwks_auth_config_reader import JwksAuthConfigReader
from jwksauthlib.auth.identity_extractor import IdentityExtractor
from jwksauthlib.auth.jwks.jwks_fetcher import JwksFetcher
from jwksauthlib.auth.jwks.jwks_key_set_cache import JwksKeySetCache
from jwksauthlib.auth.token_verifier import TokenVerifier
from jwksauthlib.auth.validation_result_cache import ValidationResultCache
from jwksauthlib.container.simple_container import SimpleContainer
from jwksauthlib.utilities.environment.environment_variables import (
    EnvironmentVariables,
)

logger = logging.getLogger(__name__)


class ContainerFactory:
    # noinspection PyMethodMayBeStatic
    def create_container(self) -> SimpleContainer:
        logger.info("Initializing DI container")

        container = SimpleContainer()

        # register services here
        container.register(
            EnvironmentVariables,
            lambda c: EnvironmentVariables(),
        )

        container.register(
            JwksAuthConfigReader,
            lambda c: JwksAuthConfigReader(
                environment_variables=c.resolve(EnvironmentVariables)
            ),
        )

        container.singleton(
            JwksAuthConfig,
            lambda c: c.resolve(JwksAuthConfigReader).read_config(),
        )

        container.singleton(
            JwksFetcher,
            lambda c: JwksFetcher(
                jwks_uri=c.resolve(JwksAuthConfig).jwks_uri,
                max_attempts=c.resolve(JwksAuthConfig).fetch_retry_attempts,
                retry_base_delay_seconds=c.resolve(
                    JwksAuthConfig
                ).fetch_retry_delay_seconds,
                retry_max_delay_seconds=c.resolve(
                    JwksAuthConfig
                ).fetch_retry_max_delay_seconds,
                timeout_seconds=c.resolve(JwksAuthConfig).fetch_timeout_seconds,
                connect_timeout_seconds=c.resolve(
                    JwksAuthConfig
                ).fetch_connect_timeout_seconds,
            ),
        )

        container.singleton(
            JwksKeySetCache,
            lambda c: JwksKeySetCache(
                fetcher=c.resolve(JwksFetcher),
                ttl_seconds=c.resolve(JwksAuthConfig).key_set_cache_ttl_seconds,
                forced_refresh_cooldown_seconds=c.resolve(
                    JwksAuthConfig
                ).forced_refresh_cooldown_seconds,
            ),
        )

        container.singleton(
            ValidationResultCache,
            lambda c: ValidationResultCache(
                ttl_seconds=c.resolve(JwksAuthConfig).validation_cache_ttl_seconds,
                max_entries=c.resolve(JwksAuthConfig).validation_cache_max_entries,
            ),
        )

        container.singleton(
            TokenVerifier,
            lambda c: TokenVerifier(
                key_set_cache=c.resolve(JwksKeySetCache),
                issuer=c.resolve(JwksAuthConfig).issuer,
                audience=c.resolve(JwksAuthConfig).audience,
                allowed_roles=c.resolve(JwksAuthConfig).allowed_roles,
                leeway_seconds=c.resolve(JwksAuthConfig).clock_skew_leeway_seconds,
                issued_at_future_tolerance_seconds=c.resolve(
                    JwksAuthConfig
                ).issued_at_future_tolerance_seconds,
            ),
        )

        container.singleton(IdentityExtractor, lambda c: IdentityExtractor())

        container.singleton(
            BearerTokenAuthenticator,
            lambda c: BearerTokenAuthenticator(
                config=c.resolve(JwksAuthConfig),
                key_set_cache=c.resolve(JwksKeySetCache),
                token_verifier=c.resolve(TokenVerifier),
                validation_result_cache=c.resolve(ValidationResultCache),
                identity_extractor=c.resolve(IdentityExtractor),
            ),
        )

        logger.info("DI container initialized")
        return container
