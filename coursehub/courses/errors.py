from __future__ import annotations


class UpstreamError(Exception):
    """Base error raised by the upstream catalog adapter."""


class UpstreamHttpError(UpstreamError):
    """Raised when the upstream answers with a non-success status code."""

    def __init__(self, status_code: int, url: str, message: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message or f"upstream HTTP error {status_code} for {url}")


class UpstreamTransportError(UpstreamError):
    """Raised for connectivity and timeout issues talking to the upstream."""


class UpstreamDecodeError(UpstreamError):
    """Raised when a page body is not JSON or not shaped like a page."""


__all__ = [
    "UpstreamError",
    "UpstreamHttpError",
    "UpstreamTransportError",
    "UpstreamDecodeError",
]
