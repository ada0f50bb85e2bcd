from fastapi import HTTPException, status

from errors import ErrorKind, LedgerError, LedgerPersistenceError, LedgerStateError

NOT_FOUND_KINDS = {ErrorKind.ACCOUNT_NOT_FOUND, ErrorKind.ENTRY_NOT_FOUND}


def to_http_exception(e: LedgerError) -> HTTPException:
    """Translate a ledger error into the response the routers return."""
    if e.kind in NOT_FOUND_KINDS:
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, LedgerPersistenceError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(e, LedgerStateError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=status_code, detail=e.to_dict())
