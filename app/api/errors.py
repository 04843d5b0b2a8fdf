"""Exception handlers producing the uniform error envelope."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppError, AuthenticationError
from app.utils.logging import get_logger
from app.utils.responses import create_error_response

LOGGER = get_logger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid request"))
    if msg.startswith(_VALUE_ERROR_PREFIX):
        return msg[len(_VALUE_ERROR_PREFIX):]
    field = first.get("loc", ("",))[-1]
    return f"{field}: {msg}" if field else msg


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, AuthenticationError) or type(exc) is AppError:
        error, message = exc.error_label, exc.message
    else:
        error, message = exc.message, None

    log = LOGGER.error if exc.status_code >= 500 else LOGGER.info
    log(
        f"{exc.__class__.__name__}: {exc.message}",
        exc_info=exc.status_code >= 500,
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return create_error_response(exc.status_code, error, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return create_error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return create_error_response(400, _validation_message(exc))


async def unhandled_exception_handler(request: Request, exc: Exception):
    LOGGER.error(
        f"Unhandled error: {exc}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return create_error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
