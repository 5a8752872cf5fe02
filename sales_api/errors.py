"""
Sales API - Error taxonomy and response envelope.

Handlers raise one of the ``ApiError`` subclasses below; the exception
handlers installed by ``install_error_handlers`` turn them (and FastAPI's
own validation / routing errors) into ``{"success": false, "message", "error"}``.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sales_api.config import Settings

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    "/",
    "/health",
    "/api/admin/register",
    "/api/admin/login",
    "/api/admin/profile",
    "/api/admin/change-password",
    "/api/admin/logout",
    "/api/stats",
    "/api/general-sales",
    "/api/daily-breakdown",
    "/api/customer-credit",
    "/api/out-of-stock",
]


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, error: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(ApiError):
    status_code = 400


class DuplicateKeyError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    status_code = 403


class UnhandledError(ApiError):
    status_code = 500


def envelope(message: str, error: Optional[Any] = None, **extra) -> dict:
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    body.update(extra)
    return body


def _missing_fields(errors: list) -> list:
    fields = []
    for err in errors:
        if err.get("type") != "missing":
            continue
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        if loc:
            fields.append(".".join(loc))
    return fields


def install_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        error = exc.error
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
            if settings.is_production:
                error = None
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(envelope(exc.message, error)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        missing = _missing_fields(errors)
        if missing:
            message = f"Missing required fields: {', '.join(missing)}"
        else:
            message = "Validation failed"
        details = [
            {"field": ".".join(str(p) for p in e.get("loc", ())[1:]), "message": e.get("msg")}
            for e in errors
        ]
        return JSONResponse(status_code=400, content=jsonable_encoder(envelope(message, details)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=envelope(
                "Route not found",
                path=request.url.path,
                method=request.method,
                availableEndpoints=AVAILABLE_ENDPOINTS,
            ))
        return JSONResponse(status_code=exc.status_code, content=envelope(str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = None if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content=envelope("Internal server error", error))
