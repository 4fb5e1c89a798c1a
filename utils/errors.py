"""HTTP-mapped error types raised by services."""

from typing import List, Optional
from fastapi import HTTPException

INDEX_ERROR_MARKERS = ("requires an index", "needs an index")
DATABASE_CONFIG_ERROR = "Database configuration error."


class APIError(HTTPException):
    """Base error carrying its own HTTP status."""

    status_code = 500

    def __init__(self, detail: str, code: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        self.code = code


class ValidationFailed(APIError):
    status_code = 400

    def __init__(self, details: List[str]):
        super().__init__("Validation failed")
        self.details = details


class Unauthorized(APIError):
    status_code = 401


class QuotaExceeded(APIError):
    status_code = 402


class Forbidden(APIError):
    status_code = 403


class NotFound(APIError):
    status_code = 404


class Conflict(APIError):
    status_code = 409


def is_index_error(error: Exception) -> bool:
    """True when Firestore rejected a query for lack of a composite index."""
    message = str(error)
    return any(marker in message for marker in INDEX_ERROR_MARKERS)


def raise_server_error(logger, action: str, error: Exception):
    """Log an unexpected failure and raise the matching 500."""
    if is_index_error(error):
        logger.error(
            f"Firestore index missing while trying to {action}. "
            f"Create the index from the link in the error below "
            f"(Firebase console > Firestore > Indexes), then retry. {error}"
        )
        raise HTTPException(status_code=500, detail=DATABASE_CONFIG_ERROR)
    logger.error(f"Error trying to {action}: {error}", exc_info=True)
    raise HTTPException(status_code=500, detail=f"Error trying to {action}: {str(error)}")


def ensure_owner(caller_id: str, owner_id: str, detail: str = "Forbidden: You can only access your own data."):
    """Raise 403 unless the caller is the owner of the resource."""
    if not caller_id or caller_id != owner_id:
        raise Forbidden(detail)
