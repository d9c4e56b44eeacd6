import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Operation failed"
MISSING_ERROR_TYPES = {"missing", "string_too_short"}


def failure_message(message: str):
    """Attach the generic 500 message an endpoint reports when it fails unexpectedly."""

    def _wrap(endpoint):
        endpoint.failure_message = message
        return endpoint

    return _wrap


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "header")]
    return ".".join(parts) or "body"


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    missing = [_field_name(e["loc"]) for e in errors if e.get("type") in MISSING_ERROR_TYPES]
    if missing:
        return "Missing required fields: " + ", ".join(dict.fromkeys(missing))
    if not errors:
        return "Invalid request"
    first = errors[0]
    return f"Invalid request: {_field_name(first['loc'])}: {first.get('msg', 'invalid value')}"


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, describe_validation_error(exc))


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    endpoint = request.scope.get("endpoint")
    message = getattr(endpoint, "failure_message", DEFAULT_FAILURE_MESSAGE)
    logger.exception("%s: %s %s", message, request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
