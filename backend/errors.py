"""
Typed errors raised by the ledger engine.

Every failure carries a machine-checkable ``kind`` plus a human readable
message. The three families map onto how callers recover:

    LedgerError (base)
    |
    +-- LedgerValidationError   rejected before any write, fix the input
    +-- LedgerStateError        rejected, nothing was mutated
    +-- LedgerPersistenceError  transaction rolled back as a whole
"""

import enum


class ErrorKind(str, enum.Enum):
    INSUFFICIENT_LINES = "InsufficientLines"
    NEGATIVE_AMOUNT = "NegativeAmount"
    AMBIGUOUS_LINE = "AmbiguousLine"
    EMPTY_LINE = "EmptyLine"
    UNBALANCED_ENTRY = "UnbalancedEntry"
    INVALID_AMOUNT = "InvalidAmount"
    DUPLICATE_ACCOUNT_CODE = "DuplicateAccountCode"
    DUPLICATE_REFERENCE = "DuplicateReference"
    INVALID_ACCOUNT = "InvalidAccount"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    ENTRY_NOT_FOUND = "EntryNotFound"
    INVALID_STATE = "InvalidState"
    MISSING_ACCOUNT = "MissingAccount"
    PERSISTENCE_ERROR = "PersistenceError"


class LedgerError(Exception):
    """Base class for all ledger engine failures."""

    default_kind = ErrorKind.PERSISTENCE_ERROR

    def __init__(self, message: str, kind: ErrorKind = None):
        self.kind = kind or self.default_kind
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}

    def __repr__(self):
        return f"{self.__class__.__name__}(kind={self.kind.value!r}, message={self.message!r})"


class LedgerValidationError(LedgerError):
    """Input violates a double-entry or chart-of-accounts rule."""

    default_kind = ErrorKind.UNBALANCED_ENTRY


class LedgerStateError(LedgerError):
    """The target record is missing or in the wrong state for the operation."""

    default_kind = ErrorKind.INVALID_STATE


class LedgerPersistenceError(LedgerError):
    """The store refused the transaction; nothing was written."""

    default_kind = ErrorKind.PERSISTENCE_ERROR
