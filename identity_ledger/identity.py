"""
Identity registration, verification and two-factor flags.
"""
import logging
from typing import Optional

from identity_ledger.access import AccessControl
from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.state import Identity, LedgerState

logger = logging.getLogger(__name__)


class IdentityRegistry:
    def __init__(self, state: LedgerState):
        self.state = state

    def register(self, caller: str, name: str, contact: str):
        """Create caller's identity; fails if one already exists."""
        if caller in self.state.identities:
            raise LedgerError(ErrorCode.ALREADY_REGISTERED, f"{caller} is already registered")

        self.state.identities[caller] = Identity(name=name, contact=contact, verified=False)
        logger.info(f"Identity registered for {caller}")

    def get(self, address: str) -> Optional[Identity]:
        """Returns a copy of the identity at address, or None."""
        identity = self.state.identities.get(address)
        if identity is None:
            return None
        return Identity.from_dict(identity.to_dict())

    def __contains__(self, address: str) -> bool:
        return address in self.state.identities

    def __len__(self) -> int:
        return len(self.state.identities)


class VerificationAuthority:
    """
    Owner-gated verification.

    Verification is keyed by address. `verify` does not require the target to
    be registered; an identity registered afterwards still starts with its
    record flag unset until the owner verifies it again.
    """

    def __init__(self, state: LedgerState, access: AccessControl):
        self.state = state
        self.access = access

    def verify(self, caller: str, target: str):
        self.access.require_owner(caller, "verify identities")

        self.state.verified.add(target)
        identity = self.state.identities.get(target)
        if identity is not None:
            identity.verified = True
        logger.info(f"Address {target} verified")

    def is_verified(self, address: str) -> bool:
        return address in self.state.verified

    def enable_two_factor(self, caller: str):
        self.access.require_registered(caller, "enable two-factor")
        self.state.identities[caller].two_factor = True
        logger.info(f"Two-factor enabled for {caller}")
