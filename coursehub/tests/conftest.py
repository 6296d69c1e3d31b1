"""Shared pytest fixtures for coursehub tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from coursehub.app import create_app
from coursehub.config import Settings, get_settings, reset_settings_cache
from coursehub.courses.aggregator import PaginationAggregator
from coursehub.courses.cache import CourseCache
from coursehub.courses.client import UpstreamClient
from coursehub.courses.service import CourseQueryService, get_course_service

BASE_URL = "https://catalog.example.test"


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self._value = start

    def time(self) -> float:
        return self._value

    def advance(self, delta: float) -> None:
        self._value += delta


class FakeUpstream:
    """Serves scripted pages and records every request it receives."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []
        self.sessions = 0

    @property
    def calls(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page = int(request.headers.get("page", "1"))
        if page > len(self.responses):
            raise AssertionError(f"unexpected request for page {page}")
        scripted = self.responses[page - 1]
        if isinstance(scripted, httpx.Response):
            return scripted
        if isinstance(scripted, Exception):
            raise scripted
        return httpx.Response(200, json=scripted)

    def client_factory(self) -> Callable[..., httpx.Client]:
        def factory(**kwargs: Any) -> httpx.Client:
            self.sessions += 1
            transport = httpx.MockTransport(self.handler)
            timeout = kwargs.get("timeout", 10.0)
            return httpx.Client(transport=transport, timeout=timeout)

        return factory


def course(course_id: str, title: str = "", price: Any = "0", old_price: Any = "0"):
    return {
        "id": course_id,
        "title": title,
        "type": "MBA",
        "category": "Business",
        "thumb": f"https://img.example.test/{course_id}.png",
        "link": f"https://catalog.example.test/c/{course_id}",
        "price": price,
        "old_price": old_price,
    }


def page(items: list[dict], has_next: bool) -> dict:
    return {"data": items, "metadata": {"hasNextPage": has_next}}


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    for name in (
        "BASE_URL",
        "API_KEY",
        "PAGE_SIZE",
        "CACHE_TTL_SECONDS",
        "CACHING_ENABLED",
        "CACHE_SIZE_LIMIT",
        "ALLOWED_ORIGINS",
        "REQUIRE_INSTITUTION_ID",
        "DEFAULT_INSTITUTION_ID",
        "MAX_PAGES",
        "UPSTREAM_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("COURSEHUB_CONFIG_FILE", str(tmp_path / "appsettings.json"))
    monkeypatch.chdir(tmp_path)
    reset_settings_cache()
    get_course_service.cache_clear()
    yield
    reset_settings_cache()
    get_course_service.cache_clear()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_service(upstream: FakeUpstream, fake_clock: FakeClock):
    def build(*, caching_enabled: bool = True, ttl_seconds: int = 300, **client_kwargs):
        client = UpstreamClient(
            BASE_URL,
            "secret-key",
            client_factory=upstream.client_factory(),
            **client_kwargs,
        )
        cache = CourseCache(
            enabled=caching_enabled, ttl_seconds=ttl_seconds, clock=fake_clock.time
        )
        return CourseQueryService(PaginationAggregator(client), cache)

    return build


@pytest.fixture
def make_client(make_service):
    def build(settings: Settings | None = None, service: CourseQueryService | None = None):
        settings = settings or Settings()
        app = create_app(settings)
        active = service or make_service()
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_course_service] = lambda: active
        return TestClient(app)

    return build
