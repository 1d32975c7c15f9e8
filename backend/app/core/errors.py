# app/core/errors.py
"""
Uniform API error kind and the single place where exceptions are turned
into JSON error responses.

Every handler raises one of the ApiError subclasses below; the exception
handlers registered by `register_exception_handlers` render them as:

    {"statusCode": 404, "data": null, "message": "...", "success": false, "errors": []}
"""
import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("uvicorn.error")


class ApiError(Exception):
    """Base error carrying an HTTP status, a message and an optional error list."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(status_code: int, message: str, errors: Optional[list] = None) -> dict:
    return {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
        "errors": list(errors or []),
    }


def format_validation_errors(raw_errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """
    Flatten pydantic error dicts to JSON-safe {field, message} pairs.
    Pydantic's own dicts may carry exception objects in "ctx", which can't be serialized.
    """
    out = []
    for e in raw_errors:
        loc = [str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path")]
        out.append({"field": ".".join(loc), "message": str(e.get("msg", "invalid value"))})
    return out


async def _api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("[api] %s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message,
                     exc_info=exc.__cause__ or exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message, exc.errors))


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, "Invalid request payload",
                           format_validation_errors(exc.errors())),
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error("[api] unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message),
    )


async def _catch_unhandled_errors(request: Request, call_next: Callable) -> Response:
    # Runs inside CORSMiddleware, so 500 responses still carry CORS headers
    try:
        return await call_next(request)
    except Exception as exc:
        return await _unhandled_error_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the error translation boundary on the application.

    Must be called before CORSMiddleware is added: the catch-all middleware has
    to sit inside the CORS layer.
    """
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.middleware("http")(_catch_unhandled_errors)
