import logging
from typing import List, Optional

from opentelemetry import trace

from jwksauthlib.auth.config.jwks_auth_config import JwksAuthConfig
from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksFetchException
from jwksauthlib.auth.identity_extractor import IdentityExtractor
from jwksauthlib.auth.jwks.jwks_key_set_cache import JwksKeySetCache
from jwksauthlib.auth.models.claim_set import ClaimSet
from jwksauthlib.auth.models.configuration_report import ConfigurationReport
from jwksauthlib.auth.models.identity_record import IdentityRecord
from jwksauthlib.auth.token_verifier import TokenVerifier
from jwksauthlib.auth.validation_result_cache import ValidationResultCache
from jwksauthlib.open_telemetry.attribute_names import JwksOpenTelemetryAttributeNames
from jwksauthlib.open_telemetry.span_names import JwksOpenTelemetrySpanNames
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["AUTH"])


class BearerTokenAuthenticator:
    """
    Turns a raw bearer token into an IdentityRecord.

    Flow: ValidationResultCache lookup -> TokenVerifier on a miss -> store the
    successful result -> IdentityExtractor. Verification failures propagate as
    the typed exceptions raised by TokenVerifier and are never cached.
    """

    def __init__(
        self,
        *,
        config: JwksAuthConfig,
        key_set_cache: JwksKeySetCache,
        token_verifier: TokenVerifier,
        validation_result_cache: ValidationResultCache,
        identity_extractor: IdentityExtractor,
    ) -> None:
        self.config: JwksAuthConfig = config
        self.key_set_cache: JwksKeySetCache = key_set_cache
        self.token_verifier: TokenVerifier = token_verifier
        self.validation_result_cache: ValidationResultCache = validation_result_cache
        self.identity_extractor: IdentityExtractor = identity_extractor

    @staticmethod
    def extract_token(*, authorization_header: str | None) -> Optional[str]:
        """
        Extracts the token from an Authorization header.
        Args:
            authorization_header (str | None): The Authorization header string.
        Returns:
            Optional[str]: The token if the header uses the Bearer scheme, otherwise None.
        """
        if not authorization_header:
            return None
        parts = authorization_header.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
        return None

    async def verify_async(self, *, token: str) -> ClaimSet:
        if not token:
            raise ValueError("Token must not be empty")

        cached: ClaimSet | None = self.validation_result_cache.lookup(token=token)
        span = trace.get_current_span()
        span.set_attribute(JwksOpenTelemetryAttributeNames.CACHE_HIT, cached is not None)
        if cached is not None:
            logger.debug("JWT validation result retrieved from cache")
            return cached

        claims = await self.token_verifier.verify_async(token=token)
        self.validation_result_cache.store(token=token, claims=claims)
        return claims

    async def authenticate_async(self, *, token: str) -> IdentityRecord:
        """
        Verify a bearer token and build the caller's identity.

        Raises:
            ValueError: if the token is empty.
            TokenVerificationException: if the token fails verification.
            JwksFetchException: if keys could not be obtained to verify it.
        """
        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(JwksOpenTelemetrySpanNames.AUTHENTICATE):
            claims = await self.verify_async(token=token)
            identity = self.identity_extractor.extract(claims=claims)
            logger.info(
                f"JWT token validated successfully: user_id={identity.subject_id}, "
                f"role={identity.role}, exp={identity.expires_at}"
            )
            return identity

    async def verify_configuration_async(self) -> ConfigurationReport:
        """Checks the configuration and whether the key-set endpoint serves usable keys."""
        issues: List[str] = []
        if not self.config.issuer:
            issues.append("JWKS_AUTH_ISSUER is not configured")
        if not self.config.audience:
            issues.append("JWKS_AUTH_AUDIENCE is not configured")
        if not self.config.allowed_roles:
            issues.append("JWKS_AUTH_ALLOWED_ROLES is empty")
        if not self.config.jwks_uri:
            issues.append("JWKS_AUTH_JWKS_URI is not configured")

        kids: List[str] = []
        try:
            key_set = await self.key_set_cache.get_async()
            kids = key_set.kids
        except JwksFetchException as e:
            issues.append(f"Cannot fetch JWKS: {e.message}")

        return ConfigurationReport(
            configured=not issues,
            issues=issues,
            settings={
                "issuer": self.config.issuer,
                "audience": self.config.audience,
                "jwks_uri": self.config.jwks_uri,
                "allowed_roles": ", ".join(self.config.allowed_roles),
                "key_set_cache_ttl_seconds": str(self.config.key_set_cache_ttl_seconds),
                "validation_cache_ttl_seconds": str(
                    self.config.validation_cache_ttl_seconds
                ),
            },
            kids=kids,
        )
