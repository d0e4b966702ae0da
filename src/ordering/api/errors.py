"""Exception handlers mapping failures to the uniform error body.

    {"success": false, "message": ..., "error_code": ..., "timestamp": ..., "details": ...}
"""

from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.errors import OrderingError
from ordering.settings import get_settings
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, payload: dict) -> JSONResponse:
    """Wrap an ``{"error_code", "message", "details"?}`` payload in the common envelope."""
    body = {"success": False, **payload, "timestamp": datetime.now(UTC).isoformat()}
    if body.get("details"):
        body["details"] = jsonable_encoder(body["details"])
    else:
        body.pop("details", None)
    return JSONResponse(status_code=status_code, content=body)


async def handle_ordering_error(request: Request, exc: OrderingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("ordering_error", path=request.url.path, error_code=exc.code)
    return error_response(exc.status_code, exc.to_dict())


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(
        400, {"error_code": "VALIDATION_ERROR", "message": "Validation failed", "details": exc.messages}
    )


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return error_response(404, {"error_code": "NOT_FOUND", "message": "Resource not found"})


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, {"error_code": "INVALID_INPUT", "message": "Invalid request", "details": exc.errors()})


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    payload = {"error_code": "INTERNAL_ERROR", "message": "Internal server error"}
    if get_settings().expose_error_details:
        payload["details"] = {"error": str(exc)}
    return error_response(500, payload)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderingError, handle_ordering_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
