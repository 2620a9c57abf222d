# complaintdesk/core/exceptions.py
from fastapi import HTTPException, status
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError


class ComplaintDeskError(HTTPException):
    """
    Base for domain errors raised by the services.
    The response detail is {"code": ..., "message": ...}.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": message},
        )

    def __str__(self) -> str:
        return self.message


class NotFound(ComplaintDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidStateTransition(ComplaintDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state_transition"


class ValidationError(ComplaintDeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class InsufficientStock(ComplaintDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_stock"

    def __init__(self, message: str, spare_part_id: int = None, requested: int = None, available: int = None):
        self.spare_part_id = spare_part_id
        self.requested = requested
        self.available = available
        super().__init__(message)


class StoreUnavailable(ComplaintDeskError):
    """Transient persistence failure. Callers may retry; the services never do."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store_unavailable"


def translate_db_error(exc: SQLAlchemyError, action: str) -> ComplaintDeskError:
    """Map a SQLAlchemy failure onto the domain error taxonomy."""
    if isinstance(exc, IntegrityError):
        return ValidationError(f"Integrity error while {action}: {exc.orig}")
    if isinstance(exc, (OperationalError, InterfaceError, DBAPIError)):
        return StoreUnavailable(f"Store unavailable while {action}")
    return StoreUnavailable(f"Database error while {action}: {exc}")
