import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.features.scan_profiles.exceptions import (
    IncompleteStateError,
    ScanProfileError,
    TierRequiredError,
    ValidationError,
)
from app.platform.response import api_response

# Domain error -> HTTP status. Anything not listed is a 400.
SCAN_PROFILE_ERROR_STATUS = {
    TierRequiredError: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    IncompleteStateError: status.HTTP_409_CONFLICT,
}


def status_for_scan_profile_error(exc: ScanProfileError) -> int:
    for exc_type, status_code in SCAN_PROFILE_ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def add_exception_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(message=str(exc.detail) or "Error", status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(ScanProfileError)
    async def scan_profile_exception_handler(request: Request, exc: ScanProfileError):
        return api_response(
            message=str(exc),
            status_code=status_for_scan_profile_error(exc),
            error_code=exc.error_code,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logging.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
