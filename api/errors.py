"""
Error Handlers for the API

Maps the core error taxonomy onto HTTP responses:
- MISSING_FIELD, INVALID_INPUT -> 400 (bad input)
- DUPLICATE_USERNAME -> 409 (conflict)
- NOT_FOUND -> 404
- EXTRACTION_FAILED -> 422
- STORE_UNAVAILABLE -> 503 (the only retryable failure)

Every error body has the shape {"error": <message>, "code": <code>}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    FaceAuthError,
    MissingFieldError,
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    ExtractionFailedError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    MissingFieldError: 400,
    InvalidInputError: 400,
    DuplicateUsernameError: 409,
    NotFoundError: 404,
    ExtractionFailedError: 422,
    StoreUnavailableError: 503,
}


def status_code_for(error: FaceAuthError) -> int:
    """Return the HTTP status for a core error (500 if unmapped)."""
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code})


async def face_auth_error_handler(request: Request, exc: FaceAuthError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}")

    response = error_response(status_code, exc.message, exc.code)
    if exc.retryable:
        response.headers["Retry-After"] = "1"
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies (e.g. non-numeric features) are bad input, not 422
    logger.info(f"{request.method} {request.url.path} -> 400 invalid request body")
    return error_response(400, "Invalid request body", InvalidInputError.code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} raised an unexpected error")
    return error_response(500, "Internal server error", "INTERNAL_ERROR")


def register_error_handlers(app: FastAPI) -> None:
    """Install the error handlers on a FastAPI application."""
    app.add_exception_handler(FaceAuthError, face_auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
