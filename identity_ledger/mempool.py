"""
Submission queue in front of the ledger.

The ledger applies operations one at a time; concurrent submitters go through
this queue, which keeps submission order and hands out batches for blocks.
"""
import logging
import threading
from collections import OrderedDict
from typing import Optional

from identity_ledger.config import MempoolConfig
from identity_ledger.core import Transaction

logger = logging.getLogger(__name__)


class Mempool:
    def __init__(self, config: Optional[MempoolConfig] = None):
        self.config = config or MempoolConfig()
        # {tx_id: Transaction}, in submission order
        self.pending_txs: "OrderedDict[bytes, Transaction]" = OrderedDict()
        self.lock = threading.Lock()
        self.stats = {
            'total_added': 0,
            'total_rejected': 0,
            'total_removed': 0,
        }

    def add_transaction(self, tx: Transaction) -> tuple[bool, str]:
        """
        Queues a transaction.
        Returns (success, error_message)
        """
        with self.lock:
            if len(self.pending_txs) >= self.config.max_size:
                self.stats['total_rejected'] += 1
                return False, "Mempool full"

            is_valid, error = tx.validate_basic()
            if not is_valid:
                self.stats['total_rejected'] += 1
                return False, f"Validation failed: {error}"

            if tx.is_read_only:
                self.stats['total_rejected'] += 1
                return False, f"{tx.tx_type} is read-only; use call()"

            tx_id = tx.id
            if tx_id in self.pending_txs:
                self.stats['total_rejected'] += 1
                return False, "Duplicate transaction"

            self.pending_txs[tx_id] = tx
            self.stats['total_added'] += 1
            logger.debug(f"Added transaction {tx_id.hex()[:16]} ({tx.tx_type}) to mempool")
            return True, ""

    def get_pending_transactions(self, max_txs: Optional[int] = None) -> list[Transaction]:
        """Oldest-first transactions, not removed from the queue."""
        limit = max_txs if max_txs is not None else self.config.max_txs_per_block
        with self.lock:
            return list(self.pending_txs.values())[:limit]

    def remove_transactions(self, txs: list[Transaction]):
        """Removes transactions from mempool (after block inclusion)."""
        with self.lock:
            for tx in txs:
                if self.pending_txs.pop(tx.id, None) is not None:
                    self.stats['total_removed'] += 1

    def has_transaction(self, tx_id: bytes) -> bool:
        with self.lock:
            return tx_id in self.pending_txs

    def clear(self):
        with self.lock:
            count = len(self.pending_txs)
            self.pending_txs.clear()
            self.stats['total_removed'] += count
            logger.info(f"Cleared {count} transactions from mempool")

    def get_stats(self) -> dict:
        with self.lock:
            return {**self.stats, 'current_size': len(self.pending_txs)}

    def __len__(self):
        with self.lock:
            return len(self.pending_txs)
