"""
Configuration management for the identity ledger.
"""
import json
import os
from dataclasses import dataclass, asdict

DEFAULT_OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


@dataclass
class ChainConfig:
    """Ledger configuration."""
    chain_id: int = 1
    owner: str = DEFAULT_OWNER  # designated authority


@dataclass
class MempoolConfig:
    """Submission queue configuration."""
    max_size: int = 10000
    max_txs_per_block: int = 1000


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 9090


@dataclass
class Config:
    """Main configuration."""
    chain: ChainConfig
    mempool: MempoolConfig
    monitoring: MonitoringConfig

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            chain=ChainConfig(),
            mempool=MempoolConfig(),
            monitoring=MonitoringConfig()
        )

    @classmethod
    def from_file(cls, path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            chain=ChainConfig(**data.get('chain', {})),
            mempool=MempoolConfig(**data.get('mempool', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'chain': asdict(self.chain),
            'mempool': asdict(self.mempool),
            'monitoring': asdict(self.monitoring)
        }
