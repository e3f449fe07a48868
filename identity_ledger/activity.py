"""
Simulated block-height clock and per-identity activity tracking.
"""
import logging
from typing import Optional

from identity_ledger.access import AccessControl
from identity_ledger.state import LedgerState

logger = logging.getLogger(__name__)


class Clock:
    """Height counter advanced only by the designated authority."""

    def __init__(self, state: LedgerState, access: AccessControl):
        self.state = state
        self.access = access

    def height(self) -> int:
        return self.state.height

    def advance(self, caller: str) -> int:
        self.access.require_owner(caller, "advance the clock")
        self.state.height += 1
        logger.debug(f"Clock advanced to height {self.state.height}")
        return self.state.height


class ActivityTracker:
    def __init__(self, state: LedgerState, access: AccessControl):
        self.state = state
        self.access = access

    def touch(self, caller: str) -> int:
        """Record the current height as caller's last activity."""
        self.access.require_registered(caller, "update activity")
        self.state.activity[caller] = self.state.height
        logger.debug(f"Activity for {caller} recorded at height {self.state.height}")
        return self.state.height

    def last_active(self, address: str) -> Optional[int]:
        return self.state.activity.get(address)
