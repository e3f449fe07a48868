"""
In-memory ledger state: the single object every component reads and mutates.
"""
from dataclasses import dataclass, field, asdict

from identity_ledger.crypto import generate_hash, encode_canonical, decode_canonical


@dataclass
class Identity:
    """Identity record keyed by its owning address."""
    name: str
    contact: str
    verified: bool = False
    two_factor: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Identity':
        return cls(
            name=data['name'],
            contact=data['contact'],
            verified=bool(data.get('verified', False)),
            two_factor=bool(data.get('two_factor', False)),
        )


@dataclass
class ValidatorRecord:
    trust_score: int = 1
    validations: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ValidatorRecord':
        return cls(int(data['trust_score']), int(data['validations']))


@dataclass
class RecoveryRequest:
    """A pending recovery keyed by the old address."""
    new_address: str
    approvals: set = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            'new_address': self.new_address,
            'approvals': sorted(self.approvals),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RecoveryRequest':
        return cls(data['new_address'], set(data.get('approvals', [])))


class LedgerState:
    """
    Holds every keyed structure of the ledger.

    One instance is owned by one engine; nothing here is shared between
    instances.
    """

    def __init__(self):
        self.identities: dict[str, Identity] = {}
        self.verified: set[str] = set()
        self.validators: dict[str, ValidatorRecord] = {}
        self.blacklist: dict[str, str] = {}
        self.recoveries: dict[str, RecoveryRequest] = {}
        self.activity: dict[str, int] = {}
        self.height = 0

    def is_registered(self, address: str) -> bool:
        return address in self.identities

    def to_dict(self) -> dict:
        """Canonical plain-data form; keys and sets are sorted."""
        return {
            'identities': {a: self.identities[a].to_dict() for a in sorted(self.identities)},
            'verified': sorted(self.verified),
            'validators': {a: self.validators[a].to_dict() for a in sorted(self.validators)},
            'blacklist': {a: self.blacklist[a] for a in sorted(self.blacklist)},
            'recoveries': {a: self.recoveries[a].to_dict() for a in sorted(self.recoveries)},
            'activity': {a: self.activity[a] for a in sorted(self.activity)},
            'height': self.height,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LedgerState':
        state = cls()
        state.identities = {a: Identity.from_dict(d) for a, d in data.get('identities', {}).items()}
        state.verified = set(data.get('verified', []))
        state.validators = {a: ValidatorRecord.from_dict(d) for a, d in data.get('validators', {}).items()}
        state.blacklist = dict(data.get('blacklist', {}))
        state.recoveries = {a: RecoveryRequest.from_dict(d) for a, d in data.get('recoveries', {}).items()}
        state.activity = {a: int(h) for a, h in data.get('activity', {}).items()}
        state.height = int(data.get('height', 0))
        return state

    def encode(self) -> bytes:
        return encode_canonical(self.to_dict())

    @classmethod
    def decode(cls, data: bytes) -> 'LedgerState':
        return cls.from_dict(decode_canonical(data))

    @property
    def state_root(self) -> bytes:
        return generate_hash(self.encode())

    def summary(self) -> dict:
        return {
            'identities': len(self.identities),
            'verified': len(self.verified),
            'validators': len(self.validators),
            'blacklisted': len(self.blacklist),
            'pending_recoveries': len(self.recoveries),
            'height': self.height,
        }

    def __repr__(self) -> str:
        s = self.summary()
        return (
            f"LedgerState("
            f"identities={s['identities']}, "
            f"validators={s['validators']}, "
            f"pending_recoveries={s['pending_recoveries']}, "
            f"height={s['height']})"
        )

