"""
Ticket Validation Client - FastAPI Application

Hosts the validation session controllers of this device and exposes them to
the ticket page over REST + SSE.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.ticket_validation.app.query import get_validation_eligibility_use_case


WIRE_MODULES = [get_validation_eligibility_use_case]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Validation Client] Starting up...')

    tracing = TracingConfig(service_name='ticket-validation')
    tracing.setup()
    Logger.base.info('📊 [Validation Client] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Validation Client] Dependency injection wired')

    registry = container.session_registry()

    # Session timers run in this task group for the lifetime of the app
    async with anyio.create_task_group() as tg:
        registry.bind(tg)
        Logger.base.info('✅ [Validation Client] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Validation Client] Shutting down...')
        registry.close_all()
        tg.cancel_scope.cancel()

    await container.validation_api_gateway().aclose()
    Logger.base.info('🌐 [Validation Client] Ticketing API client closed')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Validation Client] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
