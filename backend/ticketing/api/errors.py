"""
Exception handlers mapping domain errors to JSON responses.

Every error body has the shape {"error": "<message>"}. Request validation
failures are client errors and map to 400.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ticketing.core.errors import DomainError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception("domain_error", code=exc.code.value, error=exc.message)
    else:
        logger.warning("domain_error", code=exc.code.value, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _describe_validation_errors(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(err.get("loc", ())[:1] == ("path",) for err in errors):
        return "Invalid ticket ID"
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _describe_validation_errors(exc)
    logger.warning("request_validation_failed", error=message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
