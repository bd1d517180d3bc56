"""
Exception handlers for the Riverthello HTTP API.
"""
import logging
from fastapi import Request, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import GameException, NotFound, NotAParticipant

logger = logging.getLogger(__name__)


def create_error_response(status_code: int, detail: str, error_code: str, request: Request) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "error_code": error_code,
            "request_id": getattr(request.state, 'request_id', None)
        }
    )


async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    """Missing game or player."""
    return create_error_response(404, str(exc), exc.error_code, request)


async def not_a_participant_handler(request: Request, exc: NotAParticipant) -> JSONResponse:
    return create_error_response(403, str(exc), exc.error_code, request)


async def game_exception_handler(request: Request, exc: GameException) -> JSONResponse:
    """Any other rejected game action."""
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return create_error_response(400, str(exc), exc.error_code, request)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors with better formatting."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(x) for x in error["loc"][1:]),
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": errors,
            "error_code": "VALIDATION_ERROR",
            "request_id": getattr(request.state, 'request_id', None)
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return create_error_response(exc.status_code, exc.detail, f"HTTP_{exc.status_code}", request)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)

    # Internal details only leak in debug mode
    detail = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return create_error_response(500, detail, "INTERNAL_ERROR", request)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(NotFound, not_found_handler)
    app.add_exception_handler(NotAParticipant, not_a_participant_handler)
    app.add_exception_handler(GameException, game_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
