"""Error taxonomy shared by the services and the HTTP layer.

Exception tree::

    MDTError (base)
    ├── InvalidInputError      400
    ├── UnauthenticatedError   401
    ├── ForbiddenError         403
    ├── NotFoundError          404
    ├── ConflictError          409
    └── CatalogError           raised at startup, never mapped to a response

Services raise these; ``register_exception_handlers`` turns them into
``{"detail": message}`` JSON responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MDTError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with structured error context.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message: str = message
        self.details: dict = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class InvalidInputError(MDTError):
    """Required fields are absent or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(MDTError):
    """No resolvable identity on the request."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Non authentifié", details: dict | None = None) -> None:
        super().__init__(message, details)


class ForbiddenError(MDTError):
    """Identity present but a permission or hierarchy check failed."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(MDTError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(MDTError):
    """Mutation conflicts with existing data (duplicate or still referenced)."""

    status_code = status.HTTP_409_CONFLICT


class CatalogError(MDTError):
    """A disease profile failed validation while the catalog was loaded."""


async def mdt_error_handler(request: Request, exc: MDTError) -> JSONResponse:
    """Translate a domain error into a JSON response."""
    logger.warning(
        f"{request.method} {request.url.path} -> {exc.status_code} "
        f"{exc.__class__.__name__}: {exc.message}"
    )
    headers = None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body validation failures as client errors (400)."""
    locations = (".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors())
    fields = [loc for loc in locations if loc]
    message = "Données incomplètes"
    if fields:
        message = f"Données incomplètes: {', '.join(fields)}"
    logger.warning(f"{request.method} {request.url.path} -> 400 {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on an application."""
    app.add_exception_handler(MDTError, mdt_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
