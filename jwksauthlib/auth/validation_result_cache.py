import hashlib
import logging
import threading
import time
from typing import Callable, Dict

from jwksauthlib.auth.models.claim_set import ClaimSet
from jwksauthlib.auth.models.validation_cache_entry import ValidationCacheEntry
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["CACHE"])


class ValidationResultCache:
    """In-memory memo of successful token verifications.

    Entries are keyed by the SHA-256 digest of the raw token, so the token itself
    is never held. An entry lives for the configured TTL but never past the
    token's own exp claim. Only successful verifications are stored; callers
    must not store after a failure.

    Access is guarded by a threading.Lock so one instance can be shared by every
    request handler, whether they run on the event loop or in worker threads.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 300.0,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl_seconds: float = ttl_seconds
        self._max_entries: int = max_entries
        self._clock: Callable[[], float] = clock
        self._entries: Dict[str, ValidationCacheEntry] = {}
        self._lock: threading.Lock = threading.Lock()

    @staticmethod
    def hash_token(*, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def lookup(self, *, token: str) -> ClaimSet | None:
        token_hash = self.hash_token(token=token)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(token_hash)
            if entry is None:
                return None
            if not entry.is_live(now=now):
                del self._entries[token_hash]
                logger.debug("Cached validation result expired")
                return None
        logger.debug("Validation result served from cache")
        return entry.claims

    def store(self, *, token: str, claims: ClaimSet) -> ValidationCacheEntry | None:
        """
        Caches the claims of a successfully verified token.

        Returns:
            The stored entry, or None when the token expires before now.
        """
        now = self._clock()
        expires_at = min(now + self._ttl_seconds, float(claims.expiry))
        if expires_at <= now:
            logger.debug("Not caching validation result for a token at or past its expiry")
            return None

        entry = ValidationCacheEntry(
            token_hash=self.hash_token(token=token),
            claims=claims,
            expires_at=expires_at,
        )
        with self._lock:
            if (
                entry.token_hash not in self._entries
                and len(self._entries) >= self._max_entries
            ):
                self._evict_locked(now=now)
            self._entries[entry.token_hash] = entry
        return entry

    def get_entry(self, *, token: str) -> ValidationCacheEntry | None:
        with self._lock:
            return self._entries.get(self.hash_token(token=token))

    def _evict_locked(self, *, now: float) -> None:
        expired = [h for h, e in self._entries.items() if not e.is_live(now=now)]
        for token_hash in expired:
            del self._entries[token_hash]
        if len(self._entries) >= self._max_entries:
            # dicts keep insertion order, so the first key is the oldest entry
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        logger.debug(
            f"Evicted validation cache entries, expired={len(expired)}, size={len(self._entries)}"
        )

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, token: str) -> bool:
        return self.get_entry(token=token) is not None
