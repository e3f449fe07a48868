"""
Quorum-gated social recovery.

A registered identity that has lost control of its address opens a request
naming a new address. Validators approve the request; once at least
RECOVERY_QUORUM distinct validators have approved, the holder of the new
address completes it and the identity record moves from the old address to
the new one.

Per old address the request moves through:

    NoRequest --initiate--> Pending(new_address, approvals)
    Pending   --approve---> Pending (approval set grows by at most one)
    Pending   --initiate--> Pending(new_address', {})   (overwrite, approvals reset)
    Pending   --complete--> NoRequest                   (identity transferred)

Approvals are a set keyed by validator address, so a single validator
approving repeatedly still counts once toward the quorum. Trust scores do not
weight approvals.
"""
import logging
from typing import Optional

from identity_ledger.access import AccessControl
from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.state import LedgerState, RecoveryRequest
from identity_ledger.validators import ValidatorRegistry

logger = logging.getLogger(__name__)

RECOVERY_QUORUM = 3


class RecoveryCoordinator:
    def __init__(self, state: LedgerState, access: AccessControl,
                 validators: ValidatorRegistry):
        self.state = state
        self.access = access
        self.validators = validators

    def initiate(self, caller: str, new_address: str):
        """
        Open (or restart) a recovery of caller's identity to new_address.

        Any request already pending for caller is replaced and its approvals
        are discarded.
        """
        self.access.require_registered(caller, "initiate recovery")

        previous = self.state.recoveries.get(caller)
        if previous is not None:
            logger.info(
                f"Recovery for {caller} restarted; dropping {len(previous.approvals)} "
                f"approval(s) for {previous.new_address}"
            )
        self.state.recoveries[caller] = RecoveryRequest(new_address=new_address)
        logger.info(f"Recovery initiated: {caller} -> {new_address}")

    def approve(self, caller: str, old_address: str):
        """Add caller's approval to the pending request for old_address."""
        # Membership is checked live on every approval.
        if not self.validators.is_validator(caller):
            raise LedgerError(ErrorCode.NOT_A_VALIDATOR, f"{caller} is not a validator")

        request = self.state.recoveries.get(old_address)
        if request is None:
            raise LedgerError(
                ErrorCode.NO_ACTIVE_RECOVERY,
                f"No recovery in progress for {old_address}"
            )

        if caller in request.approvals:
            logger.debug(f"Validator {caller} already approved recovery of {old_address}")
            return

        request.approvals.add(caller)
        self.validators.record_validation(caller)
        logger.info(
            f"Recovery of {old_address} approved by {caller} "
            f"({len(request.approvals)}/{RECOVERY_QUORUM})"
        )

    def complete(self, caller: str, old_address: str):
        """
        Move the identity at old_address to caller.

        Only the new address named in the request may complete it. All checks
        run before any mutation, so a rejected call leaves the state as it
        was.
        """
        request = self.state.recoveries.get(old_address)
        if request is None or request.new_address != caller:
            raise LedgerError(
                ErrorCode.INVALID_REQUEST,
                f"No recovery of {old_address} to {caller} is pending"
            )

        if len(request.approvals) < RECOVERY_QUORUM:
            raise LedgerError(
                ErrorCode.INSUFFICIENT_APPROVALS,
                f"Recovery of {old_address} has {len(request.approvals)}/{RECOVERY_QUORUM} approvals"
            )

        self._transfer(old_address, caller)

    def _transfer(self, old_address: str, new_address: str):
        identity = self.state.identities.pop(old_address)
        if new_address in self.state.identities and new_address != old_address:
            logger.warning(f"Recovery overwrites the identity already held by {new_address}")
        # Verification is keyed by address and stays where the authority put it.
        self.state.identities[new_address] = identity

        del self.state.recoveries[old_address]
        logger.info(f"Recovery completed: identity moved {old_address} -> {new_address}")

    def get_request(self, old_address: str) -> Optional[RecoveryRequest]:
        request = self.state.recoveries.get(old_address)
        if request is None:
            return None
        return RecoveryRequest(request.new_address, set(request.approvals))

    def approval_count(self, old_address: str) -> int:
        request = self.state.recoveries.get(old_address)
        return len(request.approvals) if request else 0

    def is_pending(self, old_address: str) -> bool:
        return old_address in self.state.recoveries
