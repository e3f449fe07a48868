"""
Hashing and canonical encoding helpers.
"""
import msgpack
from Crypto.Hash import keccak

ZERO_HASH = b'\x00' * 32


def generate_hash(data: bytes) -> bytes:
    """Generates a Keccak-256 hash."""
    return keccak.new(digest_bits=256, data=data).digest()


def encode_canonical(obj) -> bytes:
    """Msgpack encoding used for hashing; callers must pass key-sorted data."""
    return msgpack.packb(obj, use_bin_type=True)


def decode_canonical(data: bytes):
    return msgpack.unpackb(data, raw=False)


def merkle_root(hashes: list[bytes]) -> bytes:
    """Calculate Merkle root from a list of hashes."""
    if not hashes:
        return ZERO_HASH
    level = list(hashes)
    while len(level) > 1:
        # Pad to even number
        if len(level) % 2 == 1:
            level.append(level[-1])
        level = [generate_hash(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]
