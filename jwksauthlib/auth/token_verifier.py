import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

from joserfc import jws
from joserfc.errors import BadSignatureError, JoseError
from opentelemetry import trace
from pydantic import ValidationError

from jwksauthlib.auth.exceptions.algorithm_mismatch_exception import (
    AlgorithmMismatchException,
)
from jwksauthlib.auth.exceptions.invalid_signature_exception import (
    InvalidSignatureException,
)
from jwksauthlib.auth.exceptions.malformed_token_exception import (
    MalformedTokenException,
)
from jwksauthlib.auth.exceptions.token_claim_exception import (
    AudienceMismatchException,
    IssuedInFutureException,
    IssuerMismatchException,
    MissingClaimException,
    RoleNotAllowedException,
    TokenExpiredException,
)
from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)
from jwksauthlib.auth.exceptions.unknown_key_exception import UnknownKeyException
from jwksauthlib.auth.jwks.jwks_key_set_cache import JwksKeySetCache
from jwksauthlib.auth.models.claim_set import REQUIRED_CLAIMS, ClaimSet
from jwksauthlib.auth.models.public_key import PublicKey
from jwksauthlib.open_telemetry.attribute_names import JwksOpenTelemetryAttributeNames
from jwksauthlib.open_telemetry.span_names import JwksOpenTelemetrySpanNames
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["AUTH"])


class TokenVerifier:
    """
    TokenVerifier checks a compact JWS bearer token against the provider's published keys
    and a strict claim policy.

    Verification short-circuits on the first failure, in this order: structure, key lookup
    (with one forced key-set refresh on an unknown kid), algorithm, signature, then claims.
    Every failure raises a TokenVerificationException subclass. A JwksFetchException raised
    by the forced refresh is propagated unchanged.
    """

    def __init__(
        self,
        *,
        key_set_cache: JwksKeySetCache,
        issuer: str,
        audience: str,
        allowed_roles: Iterable[str],
        leeway_seconds: int = 30,
        issued_at_future_tolerance_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            key_set_cache (JwksKeySetCache): source of the provider's public keys.
            issuer (str): the exact issuer every token must carry.
            audience (str): the audience that must be present in the token's aud claim.
            allowed_roles (Iterable[str]): the roles accepted in the role claim.
            leeway_seconds (int): tolerance applied to the expiry check.
            issued_at_future_tolerance_seconds (int): how far in the future iat may be.
            clock (Callable[[], float]): returns the current epoch time.
        """
        if key_set_cache is None:
            raise ValueError("JwksKeySetCache must be provided")
        if not isinstance(key_set_cache, JwksKeySetCache):
            raise TypeError("key_set_cache must be an instance of JwksKeySetCache")
        if not issuer:
            raise ValueError("issuer must be provided")
        if not audience:
            raise ValueError("audience must be provided")

        self.key_set_cache: JwksKeySetCache = key_set_cache
        self.issuer: str = issuer
        self.audience: str = audience
        self.allowed_roles: frozenset[str] = frozenset(allowed_roles)
        self.leeway_seconds: int = leeway_seconds
        self.issued_at_future_tolerance_seconds: int = (
            issued_at_future_tolerance_seconds
        )
        self._clock: Callable[[], float] = clock

    async def verify_async(self, *, token: str) -> ClaimSet:
        """
        Verify a bearer token and return its claims.

        Args:
            token: the raw compact-serialized token.
        Returns:
            ClaimSet: the validated claims.
        Raises:
            TokenVerificationException: a subclass naming the first rule that failed.
            JwksFetchException: the key set could not be refreshed after an unknown kid.
        """
        if not token:
            raise ValueError("Token must not be empty")

        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            JwksOpenTelemetrySpanNames.VERIFY_TOKEN
        ) as span:
            try:
                header = self.read_header(token=token)
                kid, algorithm = self._read_kid_and_algorithm(header=header)
                span.set_attribute(JwksOpenTelemetryAttributeNames.TOKEN_KID, kid)
                span.set_attribute(
                    JwksOpenTelemetryAttributeNames.TOKEN_ALGORITHM, algorithm
                )

                public_key = await self._find_key_async(kid=kid)
                payload = self._verify_signature(
                    token=token, algorithm=algorithm, public_key=public_key
                )
                claims = self.validate_claims(claims=self._decode_payload(payload))
            except TokenVerificationException as e:
                span.set_attribute(
                    JwksOpenTelemetryAttributeNames.VERIFICATION_RESULT, e.kind
                )
                logger.warning(f"Token verification failed [{e.kind}]: {e.message}")
                raise

            span.set_attribute(JwksOpenTelemetryAttributeNames.VERIFICATION_RESULT, "ok")
            logger.debug(
                f"Successfully verified token for sub={claims.subject}, role={claims.role}, exp={claims.expiry}"
            )
            return claims

    @staticmethod
    def read_header(*, token: str) -> Dict[str, Any]:
        """
        Reads the protected header of a compact token without verifying it.

        Raises:
            MalformedTokenException: if the token is not a well-formed compact JWS.
        """
        if token.count(".") != 2:
            raise MalformedTokenException(
                message="Token does not have three dot-separated segments"
            )
        try:
            return dict(jws.extract_compact(token.encode()).headers())
        except (JoseError, ValueError, TypeError, UnicodeError) as e:
            raise MalformedTokenException(
                message=f"Could not decode token header [{type(e).__name__}]"
            ) from e

    @staticmethod
    def _read_kid_and_algorithm(*, header: Dict[str, Any]) -> tuple[str, str]:
        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise MalformedTokenException(message="Token header has no 'kid'")
        algorithm = header.get("alg")
        if not isinstance(algorithm, str) or not algorithm:
            raise MalformedTokenException(message="Token header has no 'alg'")
        return kid, algorithm

    async def _find_key_async(self, *, kid: str) -> PublicKey:
        public_key = await self.key_set_cache.get_key_async(kid=kid)
        if public_key is not None:
            return public_key

        # The provider may have rotated keys: refresh once, then give up.
        logger.info(f"kid '{kid}' not in cached JWKS, forcing a refresh")
        public_key = await self.key_set_cache.get_key_async(kid=kid, force_refresh=True)
        if public_key is None:
            raise UnknownKeyException(
                message=f"No matching JWKS key found for kid: {kid}", kid=kid
            )
        return public_key

    @staticmethod
    def _verify_signature(
        *, token: str, algorithm: str, public_key: PublicKey
    ) -> bytes:
        if algorithm != public_key.algorithm:
            raise AlgorithmMismatchException(
                message=f"Token algorithm '{algorithm}' does not match algorithm '{public_key.algorithm}' "
                f"published for kid '{public_key.key_id}'",
                token_algorithm=algorithm,
                key_algorithm=public_key.algorithm,
            )
        try:
            verified = jws.deserialize_compact(
                token, public_key.key, algorithms=[public_key.algorithm]
            )
        except BadSignatureError as e:
            raise InvalidSignatureException(
                message=f"Signature verification failed for kid '{public_key.key_id}'"
            ) from e
        except (JoseError, ValueError, TypeError) as e:
            raise InvalidSignatureException(
                message=f"Signature could not be verified for kid '{public_key.key_id}' [{type(e).__name__}]"
            ) from e
        return verified.payload

    @staticmethod
    def _decode_payload(payload: bytes) -> Dict[str, Any]:
        try:
            claims = json.loads(payload)
        except (ValueError, UnicodeError) as e:
            raise MalformedTokenException(
                message="Token payload is not valid JSON"
            ) from e
        if not isinstance(claims, dict):
            raise MalformedTokenException(message="Token payload is not a JSON object")
        return claims

    def validate_claims(self, *, claims: Dict[str, Any]) -> ClaimSet:
        """
        Applies the claim policy to an already signature-checked payload.

        Raises:
            TokenVerificationException: the first failing rule.
        """
        for claim in REQUIRED_CLAIMS:
            if claims.get(claim) is None:
                raise MissingClaimException(
                    message=f"Missing required JWT claim: {claim}", claim=claim
                )

        try:
            claim_set = ClaimSet.model_validate(claims)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise MalformedTokenException(
                message=f"Token claims have invalid types: {fields}"
            ) from e

        if claim_set.issuer != self.issuer:
            raise IssuerMismatchException(
                message=f"Invalid JWT issuer: expected '{self.issuer}', got '{claim_set.issuer}'"
            )

        if self.audience not in claim_set.audiences:
            raise AudienceMismatchException(
                message=f"Invalid JWT audience: expected '{self.audience}', got {sorted(claim_set.audiences)}"
            )

        now = self._clock()
        if claim_set.expiry < now - self.leeway_seconds:
            raise TokenExpiredException(
                message=f"JWT token has expired: exp={claim_set.expiry}, now={int(now)}, "
                f"expired_by={int(now - claim_set.expiry)}s",
                expires=claim_set.expiry,
                now=now,
            )

        if claim_set.role not in self.allowed_roles:
            raise RoleNotAllowedException(
                message=f"Invalid JWT role '{claim_set.role}', allowed roles: {sorted(self.allowed_roles)}",
                role=claim_set.role,
            )

        issued_at: Optional[int | float] = claim_set.issued_at
        if (
            issued_at is not None
            and issued_at > now + self.issued_at_future_tolerance_seconds
        ):
            raise IssuedInFutureException(
                message=f"JWT issued too far in the future: iat={issued_at}, now={int(now)}"
            )

        return claim_set
