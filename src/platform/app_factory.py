"""
FastAPI app factory for the validation client

Routers, CORS for the ticket page, exception handlers, tracing and the
health/metrics endpoints. The lifespan (session task group, DI wiring) is
supplied by src.main so tests can build the same app.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.ticket_validation.driving_adapter.http_controller.device_location_controller import (
    router as device_router,
)
from src.service.ticket_validation.driving_adapter.http_controller.ticket_validation_controller import (
    router as validation_router,
)


SERVICE_NAME = 'ticket-validation'


def create_app(*, lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]]) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description='Validity windows, rotating QR sessions, geofence gate and peer voting',
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Must run before routes are mounted
    TracingConfig(service_name=SERVICE_NAME).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    app.include_router(validation_router, prefix='/api/ticket', tags=['validation'])
    app.include_router(device_router, prefix='/api/device', tags=['device'])

    _register_common_endpoints(app)
    return app


def _register_common_endpoints(app: FastAPI) -> None:
    @app.get('/health')
    async def health_check() -> dict[str, Any]:
        registry = container.session_registry()
        return {
            'status': 'healthy' if registry.is_bound else 'starting',
            'service': settings.PROJECT_NAME,
            'version': settings.VERSION,
        }

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus exposition of the validation_* metrics"""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
