import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


def _field_name(error: dict) -> str:
    parts = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = _field_name(first)
    if first.get("type") == "missing":
        message = f"Field '{field}' is required"
    else:
        message = f"Field '{field}' is invalid: {first.get('msg', 'bad value')}"

    return JSONResponse(
        status_code=422,
        content={"detail": message, "errors": jsonable_encoder(errors)},
    )


async def database_unavailable_handler(request: Request, exc: Exception):
    logger.error(f"Database unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error during {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    # Pool checkout timeouts and lost connections are reported, never retried
    app.add_exception_handler(PoolTimeoutError, database_unavailable_handler)
    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(InterfaceError, database_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
