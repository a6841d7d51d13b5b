import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.exceptions.base_exception import AppException

logger = logging.getLogger(__name__)


def _error_body(message: str, error_code: str = None, errors=None) -> dict:
    body = {"success": False, "message": message}
    if error_code:
        body["error_code"] = error_code
    if errors:
        body["errors"] = errors
    return body


def app_exception_response(e: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=e.status_code,
        content=_error_body(e.message, e.error_code, e.errors),
        headers=e.headers,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence: anything that escapes the route handlers is turned
    into the standard error envelope. Internals are never leaked.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except AppException as e:
            return app_exception_response(e)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=_error_body("Internal server error", "INTERNAL_SERVER_ERROR"),
            )


async def _handle_app_exception(request: Request, e: AppException):
    return app_exception_response(e)


async def _handle_http_exception(request: Request, e: StarletteHTTPException):
    message = e.detail if isinstance(e.detail, str) else "Request failed"
    return JSONResponse(
        status_code=e.status_code,
        content=_error_body(message),
        headers=getattr(e, "headers", None),
    )


async def _handle_validation_error(request: Request, e: RequestValidationError):
    errors = []
    for err in e.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form"))
        msg = err.get("msg", "Invalid value")
        # "Value error, <msg>" -> "<msg>"
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.append(f"{location}: {msg}" if location else msg)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", "VALIDATION_ERROR", errors),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, _handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
