from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from coursehub.config import DEFAULT_UPSTREAM_TIMEOUT_SECONDS, resolve_page_size
from coursehub.metrics import UPSTREAM_PAGES

from .errors import UpstreamDecodeError, UpstreamHttpError, UpstreamTransportError
from .models import UpstreamCourse, UpstreamPage

ITEMS_PATH = "/api/vitrine/itens"

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., httpx.Client]


def _http_client_factory(**kwargs: Any) -> httpx.Client:
    timeout = kwargs.pop("timeout", DEFAULT_UPSTREAM_TIMEOUT_SECONDS)
    return httpx.Client(timeout=timeout, **kwargs)


def build_items_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{ITEMS_PATH}"


def build_headers(
    api_key: str, institution_id: int | str, page_size: Any, page_number: int
) -> dict[str, str]:
    return {
        "X-Api-Key": api_key,
        "ie_id": str(institution_id),
        "limit": str(resolve_page_size(page_size)),
        "page": str(page_number),
    }


def decode_page(body: Any) -> UpstreamPage:
    """Turn a decoded JSON body into an :class:`UpstreamPage`."""

    if body is None:
        return UpstreamPage(data=None)
    if not isinstance(body, dict):
        raise UpstreamDecodeError(
            f"expected a JSON object, got {type(body).__name__}"
        )

    raw_items = body.get("data")
    if raw_items is None:
        return UpstreamPage(data=None)
    if not isinstance(raw_items, list):
        raise UpstreamDecodeError("page data is not a list")

    try:
        items = [UpstreamCourse.model_validate(item) for item in raw_items]
    except ValidationError as exc:
        raise UpstreamDecodeError(f"malformed course record: {exc}") from exc

    metadata = body.get("metadata")
    flag = None
    if isinstance(metadata, dict):
        flag = metadata.get("hasNextPage")
    if flag is None:
        flag = body.get("hasNextPage")
    return UpstreamPage(data=items, has_next_page=flag is True)


class UpstreamClient:
    """Fetches single pages from the upstream catalog."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        page_size: Any = None,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.page_size = resolve_page_size(page_size)
        self.timeout = timeout
        self._client_factory = client_factory

    def open_session(self) -> httpx.Client:
        """Return an httpx client to share across the pages of one walk."""

        factory = self._client_factory or _http_client_factory
        return factory(timeout=self.timeout)

    def fetch_page(
        self,
        institution_id: int | str,
        coupon_id: str | None,
        page_number: int,
        *,
        session: Optional[httpx.Client] = None,
    ) -> UpstreamPage:
        url = build_items_url(self.base_url)
        params = {"coupon": coupon_id} if coupon_id else None
        headers = build_headers(
            self.api_key, institution_id, self.page_size, page_number
        )
        try:
            if session is not None:
                response = session.get(url, params=params, headers=headers)
            else:
                with self.open_session() as client:
                    response = client.get(url, params=params, headers=headers)
        except httpx.RequestError as exc:
            UPSTREAM_PAGES.labels(outcome="transport_error").inc()
            raise UpstreamTransportError(
                f"upstream request failed for page {page_number}: {exc}"
            ) from exc

        if not response.is_success:
            UPSTREAM_PAGES.labels(outcome="http_error").inc()
            raise UpstreamHttpError(response.status_code, str(response.request.url))

        try:
            page = decode_page(json.loads(response.content))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            UPSTREAM_PAGES.labels(outcome="decode_error").inc()
            raise UpstreamDecodeError(f"page {page_number} is not JSON") from exc
        except UpstreamDecodeError:
            UPSTREAM_PAGES.labels(outcome="decode_error").inc()
            raise

        UPSTREAM_PAGES.labels(outcome="ok").inc()
        logger.debug(
            "upstream page decoded",
            extra={"page": page_number, "institution_id": str(institution_id)},
        )
        return page


__all__ = [
    "ITEMS_PATH",
    "UpstreamClient",
    "build_headers",
    "build_items_url",
    "decode_page",
]
