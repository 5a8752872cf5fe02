"""
Somalia Tourism API - Errors
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tourism_api.config import Settings

logger = logging.getLogger(__name__)


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


def failure(message: str, error: Optional[Any] = None) -> dict:
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


def install_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        error = exc.error
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
            if settings.is_production:
                error = None
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(failure(exc.message, error)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        missing = [str(e["loc"][-1]) for e in errors if e.get("type") == "missing" and e.get("loc")]
        message = f"Missing required fields: {', '.join(missing)}" if missing else "Validation failed"
        details = [{"field": ".".join(str(p) for p in e.get("loc", ())[1:]), "message": e.get("msg")} for e in errors]
        return JSONResponse(status_code=400, content=jsonable_encoder(failure(message, details)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=failure("Endpoint not found"))
        return JSONResponse(status_code=exc.status_code, content=failure(str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Server error on %s %s", request.method, request.url.path)
        error = None if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content=failure("Something went wrong!", error))
