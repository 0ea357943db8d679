"""
Shared FastAPI dependencies.

Services are created once per application by ``create_app`` and kept
on ``app.state``; these helpers hand them to route functions.
"""

from fastapi import HTTPException, Request, status

from ..core.exceptions import RecordValidationError, StorageError
from ..services.identity_service import IdentityService
from ..services.record_service import RecordService


def get_record_service(request: Request) -> RecordService:
    return request.app.state.record_service


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def to_http_error(exc: Exception) -> HTTPException:
    """Translate a service-layer exception into an HTTP error."""
    if isinstance(exc, RecordValidationError):
        return HTTPException(
            status_code=422,
            detail={"field": exc.field, "message": exc.message},
        )
    if isinstance(exc, StorageError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
