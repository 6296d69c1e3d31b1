"""Drive the upstream catalog page by page and flatten the results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from coursehub.config import DEFAULT_MAX_PAGES

from .models import Course, UpstreamPage

logger = logging.getLogger(__name__)


class PageFetcher(Protocol):
    def open_session(self) -> httpx.Client: ...

    def fetch_page(
        self,
        institution_id: int | str,
        coupon_id: str | None,
        page_number: int,
        *,
        session: Optional[httpx.Client] = None,
    ) -> UpstreamPage: ...


@dataclass
class AggregateResult:
    """Courses collected so far plus how the walk ended.

    ``complete`` is False when a page failed or the page bound was hit; the
    courses are still valid, just possibly partial.
    """

    courses: list[Course] = field(default_factory=list)
    pages: int = 0
    complete: bool = True
    error: Optional[Exception] = None


class PaginationAggregator:
    def __init__(self, fetcher: PageFetcher, *, max_pages: int = DEFAULT_MAX_PAGES):
        self._fetcher = fetcher
        # 0 disables the bound; pagination then ends only on upstream signal.
        self._max_pages = max(0, int(max_pages))

    def aggregate(
        self, institution_id: int | str, coupon_id: str | None = None
    ) -> list[Course]:
        return self.collect(institution_id, coupon_id).courses

    def collect(
        self, institution_id: int | str, coupon_id: str | None = None
    ) -> AggregateResult:
        result = AggregateResult()
        page_number = 1
        has_next_page = True

        try:
            session = self._fetcher.open_session()
        except Exception as exc:
            logger.warning(
                "could not open upstream session for institution %s",
                institution_id,
                exc_info=True,
            )
            result.complete = False
            result.error = exc
            return result

        with session:
            while has_next_page:
                if self._max_pages and page_number > self._max_pages:
                    logger.warning(
                        "stopping pagination for institution %s after %d pages",
                        institution_id,
                        self._max_pages,
                    )
                    result.complete = False
                    break

                try:
                    page = self._fetcher.fetch_page(
                        institution_id, coupon_id, page_number, session=session
                    )
                except Exception as exc:
                    logger.warning(
                        "error fetching courses for institution %s at page %d",
                        institution_id,
                        page_number,
                        exc_info=True,
                    )
                    result.complete = False
                    result.error = exc
                    break

                if page.data is None:
                    break

                result.courses.extend(
                    item.to_course(institution_id) for item in page.data
                )
                result.pages += 1
                has_next_page = page.has_next_page
                logger.info(
                    "page %d fetched %d courses. has_next_page=%s",
                    page_number,
                    len(page.data),
                    has_next_page,
                )
                page_number += 1

        logger.info(
            "completed fetching pages for institution %s. total courses: %d",
            institution_id,
            len(result.courses),
        )
        return result


__all__ = ["AggregateResult", "PageFetcher", "PaginationAggregator"]
