import asyncio
import logging
import time
from typing import Callable

from opentelemetry import trace

from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksFetchException
from jwksauthlib.auth.jwks.jwks_fetcher import JwksFetcher
from jwksauthlib.auth.models.key_set import JwksKeySet
from jwksauthlib.auth.models.public_key import PublicKey
from jwksauthlib.open_telemetry.attribute_names import JwksOpenTelemetryAttributeNames
from jwksauthlib.open_telemetry.span_names import JwksOpenTelemetrySpanNames
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["JWKS"])


class JwksKeySetCache:
    """Holds the most recently fetched JwksKeySet for a fixed time-to-live.

    Refresh Strategy:
    - get_async() serves the cached set while it is younger than ttl_seconds.
    - Once expired it refreshes. If that refresh fails while an older set is
      still held, the stale set is served and the next refresh attempt is
      postponed by stale_retry_seconds. With nothing cached the error propagates.
    - refresh_async() is the forced path used after an unknown kid. It fetches and
      never falls back to the stale set. A forced refresh started less than
      forced_refresh_cooldown_seconds ago is not repeated: the held set is returned
      instead. When a forced fetch fails, the previous expiry is restored (or the
      stale retry window applied) so routine lookups keep serving the held set.

    Concurrency Strategy:
    - At most one fetch is in flight. Concurrent callers share one asyncio.Task
      and await it through asyncio.shield, so cancelling one caller abandons
      only that caller's wait and the fetch keeps running for the others.
    - The task is created without any await between checking and storing it,
      which makes the check-and-create atomic on the event loop.

    Public API:
    - await get_async(): current key set, refreshing when expired.
    - await refresh_async(): forced refresh, propagates JwksFetchException.
    - await get_key_async(kid, force_refresh): key lookup helper.
    - invalidate(): mark the cached set expired while keeping it as stale copy.
    - clear(): drop everything (primarily for tests).
    """

    def __init__(
        self,
        *,
        fetcher: JwksFetcher,
        ttl_seconds: float = 3600.0,
        stale_retry_seconds: float = 30.0,
        forced_refresh_cooldown_seconds: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not isinstance(fetcher, JwksFetcher):
            raise TypeError(
                f"fetcher must be an instance of JwksFetcher, got {type(fetcher).__name__}"
            )
        self._fetcher: JwksFetcher = fetcher
        self._ttl_seconds: float = ttl_seconds
        self._stale_retry_seconds: float = stale_retry_seconds
        self._forced_refresh_cooldown_seconds: float = forced_refresh_cooldown_seconds
        self._clock: Callable[[], float] = clock
        self._key_set: JwksKeySet | None = None
        self._expires_at: float = 0.0
        self._refresh_task: asyncio.Task[JwksKeySet] | None = None
        self._last_forced_refresh_at: float | None = None

    @property
    def cached_key_set(self) -> JwksKeySet | None:
        return self._key_set

    def is_fresh(self) -> bool:
        return self._key_set is not None and self._clock() < self._expires_at

    async def get_async(self) -> JwksKeySet:
        """Return the cached key set, refreshing it first when it has expired.

        Raises:
            JwksFetchException: only when no key set has ever been fetched.
        """
        key_set = self._key_set
        if key_set is not None and self._clock() < self._expires_at:
            return key_set

        try:
            return await self._refresh_shared_async(forced=False)
        except JwksFetchException as e:
            stale = self._key_set
            if stale is None:
                logger.error(f"No cached JWKS available and refresh failed: {e}")
                raise
            logger.warning(
                f"JWKS refresh failed, serving stale key set fetched at {stale.fetched_at:.0f} "
                f"(kids={stale.kids}): {e}"
            )
            self._expires_at = self._clock() + self._stale_retry_seconds
            return stale

    async def refresh_async(self) -> JwksKeySet:
        """Force a refresh, ignoring the TTL. Fetch errors are never absorbed here."""
        key_set = self._key_set
        task = self._refresh_task
        in_flight = task is not None and not task.done()
        if key_set is not None and not in_flight and self._in_forced_refresh_cooldown():
            logger.debug(
                "Skipping forced JWKS refresh, one was started less than "
                f"{self._forced_refresh_cooldown_seconds}s ago"
            )
            return key_set

        previous_expires_at = self._expires_at
        self._last_forced_refresh_at = self._clock()
        self.invalidate()
        try:
            return await self._refresh_shared_async(forced=True)
        except JwksFetchException:
            if self._key_set is not None:
                self._expires_at = max(
                    previous_expires_at, self._clock() + self._stale_retry_seconds
                )
            raise

    def _in_forced_refresh_cooldown(self) -> bool:
        last = self._last_forced_refresh_at
        return (
            last is not None
            and self._clock() < last + self._forced_refresh_cooldown_seconds
        )

    async def get_key_async(
        self, *, kid: str, force_refresh: bool = False
    ) -> PublicKey | None:
        key_set = (
            await self.refresh_async() if force_refresh else await self.get_async()
        )
        return key_set.get_key(kid=kid)

    def invalidate(self) -> None:
        logger.debug("Invalidating cached JWKS")
        self._expires_at = 0.0

    def clear(self) -> None:
        self._key_set = None
        self._expires_at = 0.0
        self._last_forced_refresh_at = None

    async def _refresh_shared_async(self, *, forced: bool) -> JwksKeySet:
        task = self._refresh_task
        if task is None or task.done():
            logger.info(f"Refreshing JWKS (forced={forced})")
            task = asyncio.create_task(self._fetch_and_store_async(forced=forced))
            task.add_done_callback(self._on_refresh_done)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight JWKS refresh")
        return await asyncio.shield(task)

    async def _fetch_and_store_async(self, *, forced: bool) -> JwksKeySet:
        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            JwksOpenTelemetrySpanNames.REFRESH_KEY_SET_CACHE,
            attributes={JwksOpenTelemetryAttributeNames.JWKS_FORCED_REFRESH: forced},
        ):
            key_set = await self._fetcher.fetch_async()
            self._key_set = key_set
            self._expires_at = self._clock() + self._ttl_seconds
            logger.info(f"Cached JWKS with kids={key_set.kids}")
            return key_set

    def _on_refresh_done(self, task: "asyncio.Task[JwksKeySet]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()
