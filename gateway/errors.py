import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidInput(GatewayError):
    status_code = 400


class OriginRejected(GatewayError):
    status_code = 403

    def __init__(self, message: str = "CORS blocked"):
        super().__init__(message)


class NotFound(GatewayError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class PayloadTooLarge(GatewayError):
    status_code = 413


class RateLimited(GatewayError):
    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later."):
        super().__init__(message)


class UpstreamFailure(GatewayError):
    """The model provider call failed (network, HTTP or provider error)."""

    status_code = 500


def error_response(exc: GatewayError, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message or "Server error"},
        headers=headers,
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[ERROR] %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return error_response(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(InvalidInput(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("[ERROR] %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
