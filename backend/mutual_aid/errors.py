"""Service-level error taxonomy and its HTTP mapping.

Services raise these; only ``install_exception_handlers`` knows about status
codes. Anything that is not a ``ServiceError`` (database failures included)
is left to FastAPI's default 500 handling.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for business-rule failures."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """Request, response or user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """Request is not open for responses, or another volunteer got there first."""

    status_code = status.HTTP_409_CONFLICT


class InvalidOperationError(ServiceError):
    """Transition that can never be legal, e.g. responding to your own request."""

    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ServiceError):
    """Caller is neither the owner nor an administrator."""

    status_code = status.HTTP_403_FORBIDDEN


class FieldValidationError(ServiceError):
    """Malformed input that slipped past schema validation (paging, sorting)."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    """No resolvable identity on the call."""

    status_code = status.HTTP_401_UNAUTHORIZED


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
