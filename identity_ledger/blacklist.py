"""
Owner-maintained blacklist. Status is advisory; no other operation reads it.
"""
import logging
from typing import Optional

from identity_ledger.access import AccessControl
from identity_ledger.state import LedgerState

logger = logging.getLogger(__name__)


class BlacklistRegistry:
    def __init__(self, state: LedgerState, access: AccessControl):
        self.state = state
        self.access = access

    def blacklist(self, caller: str, target: str, reason: str):
        self.access.require_owner(caller, "blacklist addresses")
        self.state.blacklist[target] = reason
        logger.info(f"Address {target} blacklisted: {reason}")

    def is_blacklisted(self, address: str) -> bool:
        return address in self.state.blacklist

    def reason(self, address: str) -> Optional[str]:
        return self.state.blacklist.get(address)
