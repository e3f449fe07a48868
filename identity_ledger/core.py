"""
Core data structures: transactions, receipts and blocks.
"""
import time
from typing import Optional

from identity_ledger.crypto import generate_hash, encode_canonical, merkle_root, ZERO_HASH
from identity_ledger.errors import ErrorCode

# Mutating operations
REGISTER_IDENTITY = "register-identity"
VERIFY_IDENTITY = "verify-identity"
ENABLE_TWO_FACTOR = "enable-two-factor"
ADVANCE_BLOCK = "advance-block"
REGISTER_VALIDATOR = "register-validator"
BLACKLIST_ADDRESS = "blacklist-address"
INITIATE_RECOVERY = "initiate-recovery"
APPROVE_RECOVERY = "approve-recovery"
COMPLETE_RECOVERY = "complete-recovery"
UPDATE_ACTIVITY = "update-activity"

# Read-only operations
IS_VERIFIED = "is-verified"
GET_HEIGHT = "get-height"
GET_VALIDATOR_STATS = "get-validator-stats"
IS_BLACKLISTED = "is-blacklisted"
GET_IDENTITY = "get-identity"
GET_LAST_ACTIVITY = "get-last-activity"
GET_RECOVERY_STATUS = "get-recovery-status"

# Argument names per operation, in positional order.
TX_ARGS = {
    REGISTER_IDENTITY: ('name', 'contact'),
    VERIFY_IDENTITY: ('target',),
    ENABLE_TWO_FACTOR: (),
    ADVANCE_BLOCK: (),
    REGISTER_VALIDATOR: (),
    BLACKLIST_ADDRESS: ('target', 'reason'),
    INITIATE_RECOVERY: ('new_address',),
    APPROVE_RECOVERY: ('old_address',),
    COMPLETE_RECOVERY: ('old_address',),
    UPDATE_ACTIVITY: (),
    IS_VERIFIED: ('target',),
    GET_HEIGHT: (),
    GET_VALIDATOR_STATS: ('target',),
    IS_BLACKLISTED: ('target',),
    GET_IDENTITY: ('target',),
    GET_LAST_ACTIVITY: ('target',),
    GET_RECOVERY_STATUS: ('old_address',),
}

READ_ONLY_TYPES = frozenset({
    IS_VERIFIED,
    GET_HEIGHT,
    GET_VALIDATOR_STATS,
    IS_BLACKLISTED,
    GET_IDENTITY,
    GET_LAST_ACTIVITY,
    GET_RECOVERY_STATUS,
})

TX_TYPES = frozenset(TX_ARGS)


class Transaction:
    """
    One operation submitted by a caller.

    The caller address is taken as already authenticated; transactions are
    not signed. Construction fails with ValueError for an unknown type or a
    missing/unexpected argument, so every Transaction that exists can be
    dispatched.
    """

    def __init__(self,
                 sender: str,
                 tx_type: str,
                 data: Optional[dict] = None,
                 timestamp: Optional[float] = None):
        self.sender = sender
        self.tx_type = tx_type
        self.data = dict(data or {})
        self.timestamp = timestamp if timestamp is not None else time.time()

        is_valid, error = self.validate_basic()
        if not is_valid:
            raise ValueError(error)

    @classmethod
    def from_args(cls, sender: str, tx_type: str, *args, timestamp: Optional[float] = None):
        """Build a transaction from positional arguments in TX_ARGS order."""
        if tx_type not in TX_ARGS:
            raise ValueError(f"Unknown transaction type: {tx_type}")
        names = TX_ARGS[tx_type]
        if len(args) != len(names):
            raise ValueError(f"{tx_type} takes {len(names)} argument(s), got {len(args)}")
        return cls(sender, tx_type, dict(zip(names, args)), timestamp=timestamp)

    @classmethod
    def from_dict(cls, data: dict):
        """Creates a Transaction object from a dictionary."""
        return cls(
            sender=data["sender"],
            tx_type=data["tx_type"],
            data=data.get("data"),
            timestamp=data.get("timestamp"),
        )

    def to_dict(self):
        return {
            "sender": self.sender,
            "tx_type": self.tx_type,
            "data": {k: self.data[k] for k in sorted(self.data)},
            "timestamp": self.timestamp,
        }

    @property
    def id(self) -> bytes:
        """The unique hash identifier of the transaction."""
        return generate_hash(encode_canonical(self.to_dict()))

    @property
    def is_read_only(self) -> bool:
        return self.tx_type in READ_ONLY_TYPES

    def arg(self, name: str):
        return self.data[name]

    def validate_basic(self) -> tuple[bool, str]:
        """
        Performs basic validation checks on the transaction.
        Returns (is_valid, error_message)
        """
        if not isinstance(self.sender, str) or not self.sender:
            return False, "Sender must be a non-empty address"

        if self.tx_type not in TX_ARGS:
            return False, f"Unknown transaction type: {self.tx_type}"

        expected = TX_ARGS[self.tx_type]
        missing = [name for name in expected if name not in self.data]
        if missing:
            return False, f"{self.tx_type} requires {', '.join(repr(m) for m in missing)}"

        unexpected = sorted(set(self.data) - set(expected))
        if unexpected:
            return False, f"{self.tx_type} does not take {', '.join(repr(u) for u in unexpected)}"

        for name in expected:
            if not isinstance(self.data[name], str):
                return False, f"{self.tx_type} argument '{name}' must be a string"

        # Address arguments must be non-empty; free text may be empty.
        for name in ('target', 'new_address', 'old_address'):
            if name in self.data and not self.data[name]:
                return False, f"{self.tx_type} argument '{name}' must be a non-empty address"

        return True, ""

    def __repr__(self) -> str:
        return f"Transaction({self.tx_type}, sender={self.sender}, data={self.data})"


class Receipt:
    """Outcome of one transaction: a value on success, an error code otherwise."""
    __slots__ = ('tx_id', 'tx_type', 'ok', 'value', 'error')

    def __init__(self, tx_id: bytes, tx_type: str, ok: bool,
                 value=None, error: Optional[ErrorCode] = None):
        self.tx_id = tx_id
        self.tx_type = tx_type
        self.ok = ok
        self.value = value
        self.error = error

    @classmethod
    def success(cls, tx: Transaction, value=True) -> 'Receipt':
        return cls(tx.id, tx.tx_type, True, value=value)

    @classmethod
    def failure(cls, tx: Transaction, error: ErrorCode) -> 'Receipt':
        return cls(tx.id, tx.tx_type, False, error=ErrorCode(error))

    @property
    def is_ok(self) -> bool:
        return self.ok

    def to_dict(self) -> dict:
        return {
            "tx_id": self.tx_id.hex(),
            "tx_type": self.tx_type,
            "ok": self.ok,
            "value": self.value,
            "error": int(self.error) if self.error is not None else None,
        }

    def __repr__(self) -> str:
        if self.ok:
            return f"Receipt({self.tx_type}, ok, value={self.value!r})"
        return f"Receipt({self.tx_type}, err={self.error.name})"


class Block:
    def __init__(self,
                 number: int,
                 parent_hash: bytes,
                 transactions: list[Transaction],
                 state_root: bytes,
                 receipts: Optional[list[Receipt]] = None,
                 timestamp: Optional[float] = None):
        self.number = number
        self.parent_hash = parent_hash
        self.transactions = transactions
        self.state_root = state_root
        self.receipts = receipts or []
        self.timestamp = timestamp if timestamp is not None else time.time()
        self.transactions_root = merkle_root([tx.id for tx in transactions])
        self._cached_hash = None

    @classmethod
    def genesis(cls, state_root: bytes, timestamp: Optional[float] = None) -> 'Block':
        return cls(0, ZERO_HASH, [], state_root, timestamp=timestamp)

    def header(self) -> dict:
        return {
            "number": self.number,
            "parent_hash": self.parent_hash.hex(),
            "transactions_root": self.transactions_root.hex(),
            "state_root": self.state_root.hex(),
            "timestamp": self.timestamp,
        }

    @property
    def hash(self) -> bytes:
        """The unique hash identifier of the block."""
        if not self._cached_hash:
            self._cached_hash = generate_hash(encode_canonical(self.header()))
        return self._cached_hash

    def to_dict(self):
        return {
            **self.header(),
            "hash": self.hash.hex(),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "receipts": [r.to_dict() for r in self.receipts],
        }
