from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional, Sequence

from coursehub.config import (
    DEFAULT_CACHE_SIZE_LIMIT,
    DEFAULT_CACHE_TTL_SECONDS,
    resolve_ttl_seconds,
)

from .models import Course

MAX_ENTRY_WEIGHT = 1000
NO_COUPON = "_"

logger = logging.getLogger(__name__)


def cache_key(institution_id: int | str, coupon_id: str | None) -> str:
    return f"courses:{institution_id}:{coupon_id or NO_COUPON}"


def entry_weight(courses: Sequence[Course]) -> int:
    return max(1, min(len(courses), MAX_ENTRY_WEIGHT))


@dataclass(slots=True)
class _CacheEntry:
    value: tuple[Course, ...]
    expires_at: float
    weight: int


class CourseCache:
    """Weight-bounded TTL cache of aggregated course lists.

    Values are stored as tuples and handed out by reference, so every hit
    for a key returns the same object until it expires.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        size_limit: int = DEFAULT_CACHE_SIZE_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.enabled = enabled
        self.ttl_seconds = resolve_ttl_seconds(ttl_seconds)
        self._size_limit = max(1, int(size_limit))
        self._clock = clock
        self._store: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._weight = 0
        self._lock = Lock()

    @property
    def total_weight(self) -> int:
        with self._lock:
            return self._weight

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: str) -> Optional[tuple[Course, ...]]:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                self._remove(key)
                return None
            self._store.move_to_end(key)
            return entry.value

    def put(
        self, key: str, value: Sequence[Course], ttl: Optional[int] = None
    ) -> tuple[Course, ...]:
        frozen = tuple(value)
        if not self.enabled:
            return frozen
        ttl_seconds = resolve_ttl_seconds(ttl) if ttl is not None else self.ttl_seconds
        weight = entry_weight(frozen)
        if weight > self._size_limit:
            logger.warning(
                "cache entry %s (weight %d) exceeds size limit %d; not cached",
                key,
                weight,
                self._size_limit,
            )
            return frozen

        with self._lock:
            now = self._clock()
            self._remove(key)
            self._purge_expired(now)
            while self._store and self._weight + weight > self._size_limit:
                oldest, _ = next(iter(self._store.items()))
                self._remove(oldest)
            self._store[key] = _CacheEntry(
                value=frozen, expires_at=now + ttl_seconds, weight=weight
            )
            self._weight += weight
        return frozen

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._weight = 0

    def _remove(self, key: str) -> None:
        entry = self._store.pop(key, None)
        if entry is not None:
            self._weight -= entry.weight

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._store.items() if e.expires_at <= now]
        for key in expired:
            self._remove(key)


__all__ = [
    "CourseCache",
    "MAX_ENTRY_WEIGHT",
    "NO_COUPON",
    "cache_key",
    "entry_weight",
]
