"""
Role checks shared by the gated components.
"""
from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.state import LedgerState


class AccessControl:
    """Knows the designated authority and answers caller-role questions."""

    def __init__(self, state: LedgerState, owner: str):
        if not owner:
            raise ValueError("A designated authority address is required")
        self.state = state
        self.owner = owner

    def require_owner(self, caller: str, action: str = ""):
        if caller != self.owner:
            raise LedgerError(
                ErrorCode.NOT_AUTHORIZED,
                f"Only the designated authority can {action or 'do this'}"
            )

    def require_registered(self, caller: str, action: str = ""):
        if not self.state.is_registered(caller):
            raise LedgerError(
                ErrorCode.NOT_REGISTERED,
                f"{caller} has no registered identity" + (f" ({action})" if action else "")
            )
