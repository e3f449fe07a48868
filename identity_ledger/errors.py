"""
Error codes returned by the identity ledger.

Codes are stable small integers; 107 is intentionally left unassigned.
"""
from enum import IntEnum


class ErrorCode(IntEnum):
    NOT_AUTHORIZED = 100
    ALREADY_REGISTERED = 101
    NOT_REGISTERED = 102
    NOT_VERIFIED = 103
    NOT_A_VALIDATOR = 104
    NO_ACTIVE_RECOVERY = 105
    INVALID_REQUEST = 106
    INSUFFICIENT_APPROVALS = 108


class LedgerError(Exception):
    """Raised when an operation's precondition fails."""

    def __init__(self, code: ErrorCode, message: str = ""):
        self.code = ErrorCode(code)
        super().__init__(message or self.code.name)

    def __repr__(self) -> str:
        return f"LedgerError({self.code.name}={int(self.code)}, {str(self)!r})"
