import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
from opentelemetry import trace

from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksFetchException
from jwksauthlib.auth.models.key_set import JwksKeySet
from jwksauthlib.open_telemetry.attribute_names import JwksOpenTelemetryAttributeNames
from jwksauthlib.open_telemetry.span_names import JwksOpenTelemetrySpanNames
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["HTTP"])

USER_AGENT = "jwksauthlib/1.0"


def compute_backoff_delay(
    *, attempt: int, base_delay: float, max_delay: float
) -> float:
    """
    Seconds to wait after the given (1-based) failed attempt.

    Doubles with every attempt: base, 2*base, 4*base, ... capped at max_delay.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return float(min(base_delay * (2 ** (attempt - 1)), max_delay))


@dataclass(frozen=True)
class FetchAttempt:
    """Outcome of a single GET against the key-set endpoint."""

    attempt: int
    key_set: Optional[JwksKeySet] = None
    error: Optional[Exception] = None
    retryable: bool = False

    @property
    def succeeded(self) -> bool:
        return self.key_set is not None


class JwksFetcher:
    """
    Retrieves the provider's key set from its JWKS endpoint.

    Transport failures and error statuses are retried with exponential backoff;
    a response body without usable keys is not. The fetcher only returns a new
    JwksKeySet or raises JwksFetchException; caching is left to its caller.
    """

    def __init__(
        self,
        *,
        jwks_uri: str,
        max_attempts: int = 3,
        retry_base_delay_seconds: float = 1.0,
        retry_max_delay_seconds: float = 30.0,
        timeout_seconds: float = 30.0,
        connect_timeout_seconds: float = 10.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not jwks_uri:
            raise ValueError("jwks_uri must be provided")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.jwks_uri: str = jwks_uri
        self.max_attempts: int = max_attempts
        self.retry_base_delay_seconds: float = retry_base_delay_seconds
        self.retry_max_delay_seconds: float = retry_max_delay_seconds
        self.timeout: httpx.Timeout = httpx.Timeout(
            timeout_seconds, connect=connect_timeout_seconds
        )
        self._sleep = sleep
        self._clock = clock

    async def fetch_async(self) -> JwksKeySet:
        """
        Fetches and parses the key set.

        Returns:
            JwksKeySet: a freshly built key set holding at least one key.
        Raises:
            JwksFetchException: after the last failed attempt, or immediately
                when the endpoint returns a malformed or empty key set.
        """
        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            JwksOpenTelemetrySpanNames.FETCH_JWKS,
            attributes={JwksOpenTelemetryAttributeNames.JWKS_URI: self.jwks_uri},
        ) as span:
            last_attempt: FetchAttempt | None = None
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                for attempt in range(1, self.max_attempts + 1):
                    last_attempt = await self._attempt_async(
                        client=client, attempt=attempt
                    )
                    span.set_attribute(
                        JwksOpenTelemetryAttributeNames.JWKS_ATTEMPTS, attempt
                    )
                    if last_attempt.key_set is not None:
                        span.set_attribute(
                            JwksOpenTelemetryAttributeNames.JWKS_KEY_COUNT,
                            len(last_attempt.key_set),
                        )
                        return last_attempt.key_set
                    if not last_attempt.retryable:
                        break
                    if attempt < self.max_attempts:
                        delay = compute_backoff_delay(
                            attempt=attempt,
                            base_delay=self.retry_base_delay_seconds,
                            max_delay=self.retry_max_delay_seconds,
                        )
                        logger.debug(f"Retrying JWKS fetch in {delay:.2f}s")
                        await self._sleep(delay)

            assert last_attempt is not None
            raise JwksFetchException(
                message=f"Failed to fetch JWKS from {self.jwks_uri} after {last_attempt.attempt} attempts: {last_attempt.error}",
                jwks_uri=self.jwks_uri,
                attempts=last_attempt.attempt,
                last_error=last_attempt.error,
            ) from last_attempt.error

    async def _attempt_async(
        self, *, client: httpx.AsyncClient, attempt: int
    ) -> FetchAttempt:
        logger.debug(f"Fetching JWKS from {self.jwks_uri} (attempt {attempt})")
        try:
            response = await client.get(
                self.jwks_uri,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"JWKS fetch attempt {attempt} failed with status {e.response.status_code}: {self.jwks_uri}"
            )
            return FetchAttempt(attempt=attempt, error=e, retryable=True)
        except httpx.TransportError as e:
            logger.warning(
                f"JWKS fetch attempt {attempt} failed to connect to {self.jwks_uri}: {type(e).__name__}: {e}"
            )
            return FetchAttempt(attempt=attempt, error=e, retryable=True)

        try:
            key_set = JwksKeySet.from_jwks_document(
                response.json(), fetched_at=self._clock()
            )
        except ValueError as e:  # invalid JSON or JwksDocumentException
            logger.error(f"Invalid JWKS response from {self.jwks_uri}: {e}")
            return FetchAttempt(attempt=attempt, error=e, retryable=False)

        logger.info(
            f"Successfully fetched JWKS from {self.jwks_uri}, keys= {len(key_set)}, attempt= {attempt}"
        )
        return FetchAttempt(attempt=attempt, key_set=key_set)
