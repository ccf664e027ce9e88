"""Key set caching for webhook call verification."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from cachetools import TLRUCache

from slashid_sdk.exceptions import WebhookVerificationError
from slashid_sdk.types import JWKS

if TYPE_CHECKING:
    from slashid_sdk.client import SlashIdClient

MAX_UNKNOWN_KID_LOOKUPS_PER_SECOND = 10
_RATE_LIMIT_WINDOW_SECONDS = 1.0

logger = structlog.get_logger(__name__)


class KeyCache(Protocol):
    """Storage used to share fetched key sets between verifications.

    Implementations are responsible for their own thread safety.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value that expires after ``ttl_seconds``."""


def _expires_at(_key: str, entry: tuple[Any, float], now: float) -> float:
    return now + entry[1]


class InMemoryKeyCache:
    """Process-local KeyCache with per-entry TTL."""

    def __init__(self, maxsize: int = 128, timer: Callable[[], float] = time.monotonic) -> None:
        self._entries: TLRUCache[str, tuple[Any, float]] = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=timer
        )
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else entry[0]

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (value, ttl_seconds)


def _find_key(jwks: Any, kid: str) -> dict[str, Any] | None:
    """Select JWK by kid value."""
    keys = jwks.get("keys") if isinstance(jwks, dict) else None
    if not isinstance(keys, list):
        return None
    for key in keys:
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    return None


class CachedKeySet:
    """Resolve signing keys by kid from a cached, remotely published key set.

    A cold cache or an unknown kid triggers exactly one fetch. When
    ``rate_limited`` is set, fetches caused by unknown kids on a warm cache are
    capped per second so forged kids cannot be used to hammer the key endpoint.
    """

    def __init__(
        self,
        client: SlashIdClient,
        jwks_url: str,
        cache: KeyCache,
        ttl_seconds: float = 3600,
        rate_limited: bool = True,
        now: Callable[[], float] | None = None,
    ) -> None:
        self._client = client
        self._jwks_url = jwks_url
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._rate_limited = rate_limited
        self._now = now or time.monotonic

    def get_key(self, kid: str) -> dict[str, Any]:
        """Return the JWK for ``kid``, refreshing the key set at most once."""
        cached: JWKS | None = self._cache.get(self._jwks_url)
        if cached is not None:
            key = _find_key(cached, kid)
            if key is not None:
                return key
            if self._rate_limited and self._rate_limit_exceeded():
                logger.warning("jwks_lookup_rate_limited", kid=kid)
                raise WebhookVerificationError(
                    "Too many lookups for unknown signing keys.", "rate_limited"
                )

        jwks = self._client.fetch_jwks(self._jwks_url)
        self._cache.set(self._jwks_url, jwks, self._ttl_seconds)
        logger.info("jwks_refreshed", key_count=len(jwks["keys"]))

        key = _find_key(jwks, kid)
        if key is None:
            raise WebhookVerificationError("Unknown signing key.", "unknown_key")
        return key

    def _rate_limit_exceeded(self) -> bool:
        """Count one unknown-kid lookup in the current window."""
        cache_key = f"{self._jwks_url}#ratelimit"
        now = self._now()
        previous = self._cache.get(cache_key)
        if isinstance(previous, dict) and now - previous["started_at"] < _RATE_LIMIT_WINDOW_SECONDS:
            window = {"started_at": previous["started_at"], "calls": previous["calls"] + 1}
        else:
            window = {"started_at": now, "calls": 1}
        self._cache.set(cache_key, window, _RATE_LIMIT_WINDOW_SECONDS)
        return window["calls"] > MAX_UNKNOWN_KID_LOOKUPS_PER_SECOND
