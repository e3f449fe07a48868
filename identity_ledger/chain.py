"""
The identity ledger engine.

Operations arrive as transactions, either one batch at a time through
`mine_block` or queued through the mempool and drained by `produce_block`.
Each transaction is applied to completion before the next one starts; a
rejected transaction yields a failed receipt and leaves the state untouched,
and never affects the other transactions of its block.
"""
import logging
import time
from typing import Optional

from identity_ledger.access import AccessControl
from identity_ledger.activity import ActivityTracker, Clock
from identity_ledger.blacklist import BlacklistRegistry
from identity_ledger.config import Config
from identity_ledger.core import (
    Block, Receipt, Transaction, READ_ONLY_TYPES,
    REGISTER_IDENTITY, VERIFY_IDENTITY, ENABLE_TWO_FACTOR, ADVANCE_BLOCK,
    REGISTER_VALIDATOR, BLACKLIST_ADDRESS, INITIATE_RECOVERY, APPROVE_RECOVERY,
    COMPLETE_RECOVERY, UPDATE_ACTIVITY, IS_VERIFIED, GET_HEIGHT,
    GET_VALIDATOR_STATS, IS_BLACKLISTED, GET_IDENTITY, GET_LAST_ACTIVITY,
    GET_RECOVERY_STATUS,
)
from identity_ledger.errors import LedgerError
from identity_ledger.identity import IdentityRegistry, VerificationAuthority
from identity_ledger.mempool import Mempool
from identity_ledger.monitoring import Monitor
from identity_ledger.recovery import RecoveryCoordinator
from identity_ledger.state import LedgerState
from identity_ledger.validators import ValidatorRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class IdentityChain:
    def __init__(self, config: Optional[Config] = None, owner: Optional[str] = None,
                 state: Optional[LedgerState] = None):
        self.config = config or Config.default()
        self.owner = owner or self.config.chain.owner
        self.chain_id = self.config.chain.chain_id
        self.state = state if state is not None else LedgerState()

        self.access = AccessControl(self.state, self.owner)
        self.identities = IdentityRegistry(self.state)
        self.verification = VerificationAuthority(self.state, self.access)
        self.validators = ValidatorRegistry(self.state)
        self.blacklist = BlacklistRegistry(self.state, self.access)
        self.clock = Clock(self.state, self.access)
        self.activity = ActivityTracker(self.state, self.access)
        self.recovery = RecoveryCoordinator(self.state, self.access, self.validators)

        self.mempool = Mempool(self.config.mempool)
        self.blocks: list[Block] = [Block.genesis(self.state.state_root)]

        self.monitor = Monitor(self, self.config.monitoring)
        logger.info(f"Identity ledger {self.chain_id} initialized; authority is {self.owner}")

    # ==========================================================================
    # BLOCKS
    # ==========================================================================

    @property
    def latest_block(self) -> Block:
        return self.blocks[-1]

    def get_block(self, number: int) -> Optional[Block]:
        if 0 <= number < len(self.blocks):
            return self.blocks[number]
        return None

    @property
    def state_root(self) -> bytes:
        return self.state.state_root

    def mine_block(self, transactions: list[Transaction]) -> Block:
        """Apply a batch in order and append the resulting block."""
        start = time.time()
        receipts = [self._process_transaction(tx) for tx in transactions]

        block = Block(
            number=len(self.blocks),
            parent_hash=self.latest_block.hash,
            transactions=list(transactions),
            state_root=self.state.state_root,
            receipts=receipts,
        )
        self.blocks.append(block)

        self.monitor.record_block(time.time() - start)
        self.monitor.update()

        failed = sum(1 for r in receipts if not r.ok)
        logger.info(f"Block {block.number} applied: {len(receipts)} txs, {failed} rejected")
        return block

    def submit(self, tx: Transaction) -> tuple[bool, str]:
        return self.mempool.add_transaction(tx)

    def produce_block(self) -> Block:
        """Drain the mempool in submission order into the next block."""
        transactions = self.mempool.get_pending_transactions(self.config.mempool.max_txs_per_block)
        block = self.mine_block(transactions)
        self.mempool.remove_transactions(transactions)
        return block

    # ==========================================================================
    # TRANSACTION PROCESSING
    # ==========================================================================

    def _process_transaction(self, tx: Transaction) -> Receipt:
        start = time.time()
        try:
            value = self._apply(tx)
        except LedgerError as e:
            self.monitor.record_tx(tx.tx_type, "failed", time.time() - start)
            logger.warning(
                f"Transaction {tx.id.hex()[:8]} ({tx.tx_type}) from {tx.sender} "
                f"rejected: {e.code.name}: {e}"
            )
            return Receipt.failure(tx, e.code)

        self.monitor.record_tx(tx.tx_type, "success", time.time() - start)
        if tx.tx_type == COMPLETE_RECOVERY:
            self.monitor.record_recovery()
        return Receipt.success(tx, value)

    def _apply(self, tx: Transaction):
        """Route one transaction to its component; returns the success value."""
        caller = tx.sender

        if tx.tx_type == REGISTER_IDENTITY:
            self.identities.register(caller, tx.arg('name'), tx.arg('contact'))

        elif tx.tx_type == VERIFY_IDENTITY:
            self.verification.verify(caller, tx.arg('target'))

        elif tx.tx_type == ENABLE_TWO_FACTOR:
            self.verification.enable_two_factor(caller)

        elif tx.tx_type == ADVANCE_BLOCK:
            return self.clock.advance(caller)

        elif tx.tx_type == REGISTER_VALIDATOR:
            self.validators.register_validator(caller)

        elif tx.tx_type == BLACKLIST_ADDRESS:
            self.blacklist.blacklist(caller, tx.arg('target'), tx.arg('reason'))

        elif tx.tx_type == INITIATE_RECOVERY:
            self.recovery.initiate(caller, tx.arg('new_address'))

        elif tx.tx_type == APPROVE_RECOVERY:
            self.recovery.approve(caller, tx.arg('old_address'))

        elif tx.tx_type == COMPLETE_RECOVERY:
            self.recovery.complete(caller, tx.arg('old_address'))

        elif tx.tx_type == UPDATE_ACTIVITY:
            self.activity.touch(caller)

        elif tx.tx_type == IS_VERIFIED:
            return self.verification.is_verified(tx.arg('target'))

        elif tx.tx_type == GET_HEIGHT:
            return self.clock.height()

        elif tx.tx_type == GET_VALIDATOR_STATS:
            return self.validators.stats(tx.arg('target'))

        elif tx.tx_type == IS_BLACKLISTED:
            return self.blacklist.is_blacklisted(tx.arg('target'))

        elif tx.tx_type == GET_IDENTITY:
            identity = self.identities.get(tx.arg('target'))
            return identity.to_dict() if identity else None

        elif tx.tx_type == GET_LAST_ACTIVITY:
            return self.activity.last_active(tx.arg('target'))

        elif tx.tx_type == GET_RECOVERY_STATUS:
            request = self.recovery.get_request(tx.arg('old_address'))
            return request.to_dict() if request else None

        else:
            # Unreachable: Transaction rejects unknown types at construction.
            raise ValueError(f"Unknown transaction type: {tx.tx_type}")

        return True

    def call(self, tx_type: str, args: tuple = (), caller: Optional[str] = None):
        """Evaluate a read-only operation without producing a block."""
        if tx_type not in READ_ONLY_TYPES:
            raise ValueError(f"{tx_type} modifies state; submit it in a block")
        tx = Transaction.from_args(caller or self.owner, tx_type, *args)
        return self._apply(tx)

    # ==========================================================================
    # SNAPSHOTS
    # ==========================================================================

    def snapshot(self) -> bytes:
        """Encoded copy of the current state."""
        return self.state.encode()

    @classmethod
    def from_snapshot(cls, data: bytes, config: Optional[Config] = None,
                      owner: Optional[str] = None) -> 'IdentityChain':
        return cls(config=config, owner=owner, state=LedgerState.decode(data))

    def get_stats(self) -> dict:
        return {
            **self.state.summary(),
            'blocks': len(self.blocks),
            'state_root': self.state_root.hex(),
            'mempool': self.mempool.get_stats(),
        }
