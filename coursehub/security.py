"""Origin allow-list enforcement."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def forbidden_body() -> bytes:
    payload = {
        "error": "Forbidden",
        "message": "Not allowed",
        "statusCode": 403,
        "timestamp": _timestamp(),
    }
    return json.dumps(payload).encode()


def origin_allowed(origin: str | None, allowed: Iterable[str]) -> bool:
    """Return True unless *origin* is present and not on the allow-list.

    An empty allow-list admits everything.
    """

    allowed_set = {item.lower() for item in allowed}
    if not allowed_set or not origin:
        return True
    return origin.lower() in allowed_set


class OriginValidationMiddleware:
    def __init__(
        self,
        app: Callable[..., Awaitable[Any]],
        allowed_origins: Iterable[str] = (),
    ):
        self.app = app
        self.allowed_origins = [o for o in allowed_origins if o]

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Awaitable[Any]],
        send: Callable[..., Awaitable[Any]],
    ) -> None:
        if scope.get("type") != "http" or not self.allowed_origins:
            await self.app(scope, receive, send)
            return

        origin = None
        for name, value in scope.get("headers") or []:
            if name.lower() == b"origin":
                origin = value.decode("latin-1")
                break

        if origin_allowed(origin, self.allowed_origins):
            await self.app(scope, receive, send)
            return

        logger.warning(
            "blocked request from unauthorized origin: %s. allowed origins: %s",
            origin,
            ", ".join(self.allowed_origins),
        )
        body = forbidden_body()
        await send(
            {
                "type": "http.response.start",
                "status": 403,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})


__all__ = ["OriginValidationMiddleware", "forbidden_body", "origin_allowed"]
