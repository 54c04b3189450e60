import logging
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.requests import Request

logger = logging.getLogger(__name__)

# ---------------------------
# CRUD (Database abstraction)
# ---------------------------

class DatabaseError(Exception):
    """Raised by the crud layer. Services translate these before they reach a router."""
    pass

class DatabaseConflictError(DatabaseError):
    """A unique constraint rejected the row (duplicate email, waitlist entry)."""
    pass

class DatabaseNotFoundError(DatabaseError):
    """A row the crud layer was told to touch is gone."""
    pass

class DatabaseIntegrityError(DatabaseError):
    """A foreign key or check constraint rejected the write."""
    pass

# ---------------------------
# Service (Business logic)
# ---------------------------

class BusinessError(Exception):
    pass

class ServiceError(BusinessError):
    """Unexpected failure inside a service. Reported as a bare 500."""
    pass

class NotFoundError(BusinessError):
    pass

class ConflictError(BusinessError):
    """Duplicate resource, or an action the current state forbids (completing a skipped task)."""
    pass

class PermissionDeniedError(BusinessError):
    """The objective, task or deviation belongs to another user."""
    pass

class ValidationError(BusinessError):
    """A business rule rejected the input, e.g. pillar weights over 1."""
    pass

class UnauthorizedError(BusinessError):
    pass

class ConcurrencyError(ConflictError):
    """A serialized recomputation kept losing the race."""
    pass


# ---------------------------
# FastAPI Exception Handlers
# ---------------------------

# Ordered most specific first; the first matching class wins.
ERROR_STATUS_CODES = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DatabaseNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (DatabaseConflictError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DatabaseIntegrityError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def status_code_for(exc: Exception) -> int:
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError):
        code = status_code_for(exc)
        if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"Service error on {request.url.path}: {exc}", exc_info=exc)
            return JSONResponse(status_code=code, content={"detail": "Internal server error"})

        headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(status_code=code, content={"detail": str(exc)}, headers=headers)

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        # Reaching here means a service let a crud error through untranslated
        code = status_code_for(exc)
        logger.warning(f"Untranslated database error on {request.url.path}: {exc}")
        if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            return JSONResponse(status_code=code, content={"detail": "Internal server error"})
        return JSONResponse(status_code=code, content={"detail": str(exc)})
