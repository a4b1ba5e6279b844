"""
Mapping of ledger errors onto HTTP responses.
"""

from fastapi import HTTPException, status

from app.core.exceptions import (
    InvalidInput,
    LedgerError,
    ResourceNotFound,
    StorageUnavailable,
)


def ledger_http_error(error: LedgerError) -> HTTPException:
    """Translate a ledger error into the matching HTTPException."""
    if isinstance(error, ResourceNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, InvalidInput):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, StorageUnavailable):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage unavailable, access was not recorded"
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
