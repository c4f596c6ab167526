"""Translation of domain errors into HTTP responses."""

from fastapi import HTTPException, status

from document.errors import (
    DocumentError,
    DocumentForbiddenError,
    DocumentNotFoundError,
    InvalidStateError,
)
from storage.supabase_storage import StorageError

_STATUS_CODES = {
    DocumentNotFoundError: status.HTTP_404_NOT_FOUND,
    DocumentForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidStateError: status.HTTP_409_CONFLICT,
}


def http_error(error: DocumentError | StorageError) -> HTTPException:
    if isinstance(error, StorageError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="File storage unavailable")
    code = _STATUS_CODES.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(error))
