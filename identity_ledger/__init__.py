"""
Identity registry with quorum-gated social recovery.
"""
from identity_ledger.chain import IdentityChain
from identity_ledger.config import Config
from identity_ledger.core import Block, Receipt, Transaction
from identity_ledger.errors import ErrorCode, LedgerError
from identity_ledger.recovery import RECOVERY_QUORUM

__all__ = [
    'IdentityChain',
    'Config',
    'Block',
    'Receipt',
    'Transaction',
    'ErrorCode',
    'LedgerError',
    'RECOVERY_QUORUM',
]
