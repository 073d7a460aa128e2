from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import ApiError, CustomBaseError

# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc), 500)
    return JSONResponse(status_code=error.status_code, content={'detail': error.message})


async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Upstream failures are reported as a bad gateway, keeping the upstream status for the UI
    upstream_status = exc.status_code if isinstance(exc, ApiError) else None
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={'detail': str(exc), 'upstream_status': upstream_status},
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': error.errors()},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal server error'},
    )


# Exception handler mapping (most specific first)
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    ApiError: api_error_handler,
    CustomBaseError: custom_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
