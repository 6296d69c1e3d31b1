from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Sequence

from coursehub.config import Settings, get_settings
from coursehub.metrics import COURSE_CACHE_EVENTS

from .aggregator import PaginationAggregator
from .cache import CourseCache, cache_key
from .client import UpstreamClient
from .models import Course

logger = logging.getLogger(__name__)


class CourseQueryService:
    """Cache-fronted access to the aggregated upstream course listing."""

    def __init__(
        self,
        aggregator: PaginationAggregator,
        cache: CourseCache,
        *,
        default_institution_id: int = 1,
    ) -> None:
        self._aggregator = aggregator
        self._cache = cache
        self._default_institution_id = default_institution_id
        if cache.enabled:
            logger.info(
                "in-memory cache TTL configured to %d seconds", cache.ttl_seconds
            )
        else:
            logger.info("caching is disabled - all requests will fetch fresh data")

    @property
    def cache(self) -> CourseCache:
        return self._cache

    def get_courses(
        self, institution_id: Optional[int] = None, coupon_id: Optional[str] = None
    ) -> Sequence[Course]:
        """Return courses for an institution; never raises.

        The returned sequence may be shared with other callers and must not be
        mutated.
        """

        try:
            effective_id = (
                institution_id
                if institution_id is not None
                else self._default_institution_id
            )
            key = cache_key(effective_id, coupon_id)

            if self._cache.enabled:
                cached = self._cache.get(key)
                if cached is not None:
                    COURSE_CACHE_EVENTS.labels(result="hit").inc()
                    logger.info("cache hit for %s", key)
                    return cached
                COURSE_CACHE_EVENTS.labels(result="miss").inc()
                logger.info("cache miss for %s", key)
            else:
                COURSE_CACHE_EVENTS.labels(result="bypass").inc()
                logger.info(
                    "caching disabled, fetching fresh data for institution %s",
                    effective_id,
                )

            result = self._aggregator.collect(effective_id, coupon_id)
            if not result.complete:
                logger.warning(
                    "partial course listing for %s after %d pages",
                    key,
                    result.pages,
                )
            return self._cache.put(key, result.courses)
        except Exception:
            logger.exception("error fetching courses from upstream")
            return ()


def build_course_service(settings: Settings) -> CourseQueryService:
    client = UpstreamClient(
        settings.base_url,
        settings.api_key,
        page_size=settings.page_size,
        timeout=settings.upstream_timeout_seconds,
    )
    aggregator = PaginationAggregator(client, max_pages=settings.max_pages)
    cache = CourseCache(
        enabled=settings.caching_enabled,
        ttl_seconds=settings.cache_ttl_seconds,
        size_limit=settings.cache_size_limit,
    )
    return CourseQueryService(
        aggregator, cache, default_institution_id=settings.default_institution_id
    )


@lru_cache(maxsize=1)
def get_course_service() -> CourseQueryService:
    return build_course_service(get_settings())


__all__ = ["CourseQueryService", "build_course_service", "get_course_service"]
