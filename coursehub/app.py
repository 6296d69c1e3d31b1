from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from coursehub.api.health import health as _health_handler
from coursehub.config import Settings, get_settings
from coursehub.metrics import MetricsMiddleware, metrics_app
from coursehub.security import OriginValidationMiddleware

from .routes.courses import router as courses_router

logger = logging.getLogger(__name__)


def _configure_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS configured with allowed origins: %s", ", ".join(allowed_origins))
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.warning(
            "CORS configured to allow any origin (not recommended for production)"
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="coursehub")

    # Middleware added last runs first: origin guard, then CORS, then metrics.
    app.add_middleware(MetricsMiddleware)
    _configure_cors(app, settings.allowed_origins)
    app.add_middleware(
        OriginValidationMiddleware, allowed_origins=settings.allowed_origins
    )

    app.include_router(courses_router)
    app.add_api_route(
        "/health",
        _health_handler,
        methods=["GET"],
        response_model=None,
        tags=["health"],
    )

    metrics_router = APIRouter()

    @metrics_router.get("/metrics", include_in_schema=False)
    async def _metrics_endpoint(request: Request):
        return await metrics_app(request)

    app.include_router(metrics_router)
    return app


app = create_app()
