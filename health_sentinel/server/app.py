"""Starlette status application.

Exposes the published classification over HTTP.  The app lifespan starts the
service on startup and stops it on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from health_sentinel.constants import SERVER_NAME, SERVER_VERSION
from health_sentinel.runtime.service import SentinelService

logger = logging.getLogger(__name__)


def _get_service(request: Request) -> SentinelService:
    """Retrieve the SentinelService instance from app state."""
    service = getattr(request.app.state, "sentinel_service", None)
    if service is None:
        raise RuntimeError("SentinelService not found on app.state")
    return service


async def handle_healthz(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def handle_targets(request: Request) -> JSONResponse:
    service = _get_service(request)
    snapshot = service.monitor.snapshot()
    monitored = service.monitor.monitored_targets
    classified = set(snapshot.healthy) | set(snapshot.unhealthy)
    return JSONResponse(
        {
            **snapshot.to_dict(),
            "monitored": list(monitored),
            "unclassified": sorted(t for t in monitored if t not in classified),
        }
    )


async def handle_status(request: Request) -> JSONResponse:
    service = _get_service(request)
    body = {"name": SERVER_NAME, "version": SERVER_VERSION, **service.get_status()}
    return JSONResponse(body)


async def handle_refresh(request: Request) -> JSONResponse:
    """Ask the monitor to re-read its target list on the next round."""
    _get_service(request).monitor.request_refresh()
    return JSONResponse({"refresh": "scheduled"}, status_code=202)


def create_app(service: SentinelService) -> Starlette:
    """Create the Starlette ASGI application for *service*."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("%s v%s status API starting.", SERVER_NAME, SERVER_VERSION)
        await service.start()
        try:
            yield
        finally:
            await service.stop()
            logger.info("%s status API stopped.", SERVER_NAME)

    application = Starlette(
        lifespan=lifespan,
        routes=[
            Route("/healthz", endpoint=handle_healthz),
            Route("/targets", endpoint=handle_targets),
            Route("/status", endpoint=handle_status),
            Route("/refresh", endpoint=handle_refresh, methods=["POST"]),
        ],
    )
    application.state.sentinel_service = service
    return application
