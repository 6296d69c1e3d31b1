"""Upstream course catalog aggregation."""

from .aggregator import AggregateResult, PaginationAggregator
from .cache import CourseCache, cache_key
from .client import UpstreamClient
from .errors import (
    UpstreamDecodeError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamTransportError,
)
from .models import Course, UpstreamCourse, UpstreamPage
from .service import CourseQueryService, get_course_service

__all__ = [
    "AggregateResult",
    "Course",
    "CourseCache",
    "CourseQueryService",
    "PaginationAggregator",
    "UpstreamClient",
    "UpstreamCourse",
    "UpstreamDecodeError",
    "UpstreamError",
    "UpstreamHttpError",
    "UpstreamPage",
    "UpstreamTransportError",
    "cache_key",
    "get_course_service",
]
