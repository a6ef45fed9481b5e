"""
Indexed Merkle Map
==================

Fixed-height sparse Merkle map from small integer keys to 32-byte digests.

The contract keeps only the root on-chain; callers hold a full replica and
present it alongside any operation that reads from the map.

Hashing:
- SHA-256
- Domain separation:
  - empty leaf = SHA256(0x02)
  - leaf       = SHA256(0x00 || key (8 bytes, big endian) || value)
  - node       = SHA256(0x01 || left || right)

An absent key and a key holding any value therefore produce different roots.

Version: 0.1.0
"""

from __future__ import annotations

import hashlib


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def _is_hex_32(s: str) -> bool:
    if not isinstance(s, str) or len(s) != 64:
        return False
    try:
        bytes.fromhex(s)
        return True
    except ValueError:
        return False


EMPTY_LEAF = _sha256(b"\x02")


def leaf_hash(key: int, value_hex: str) -> bytes:
    """Compute the leaf digest for a populated key."""
    return _sha256(b"\x00" + key.to_bytes(8, "big") + bytes.fromhex(value_hex))


def node_hash(left: bytes, right: bytes) -> bytes:
    """Compute a parent digest from two child digests."""
    return _sha256(b"\x01" + left + right)


def _empty_subtrees(height: int) -> list[bytes]:
    """Digest of an all-empty subtree at each level, leaves first."""
    levels = [EMPTY_LEAF]
    for _ in range(height):
        levels.append(node_hash(levels[-1], levels[-1]))
    return levels


class IndexedMerkleMap:
    """
    Authenticated key -> digest map with a single root commitment.

    Keys are integers in ``[0, 2**height)``; values are 64-char hex digests.
    """

    def __init__(self, height: int = 3, entries: dict[int, str] | None = None) -> None:
        if height < 1:
            raise ValueError("height must be >= 1")
        self.height = height
        self._leaves: dict[int, str] = {}
        self._empty = _empty_subtrees(height)
        self._root: str | None = None
        for key, value in (entries or {}).items():
            self.set(key, value)

    @property
    def capacity(self) -> int:
        return 1 << self.height

    def _check_key(self, key: int) -> None:
        if not isinstance(key, int) or isinstance(key, bool):
            raise TypeError("key must be an int")
        if key < 0 or key >= self.capacity:
            raise ValueError(f"key {key} outside map range [0, {self.capacity})")

    @property
    def root(self) -> str:
        """Hex root digest of the current contents."""
        if self._root is None:
            self._root = self._compute_root()
        return self._root

    def _compute_root(self) -> str:
        level = {k: leaf_hash(k, v) for k, v in self._leaves.items()}
        for depth in range(self.height):
            empty = self._empty[depth]
            parents: dict[int, bytes] = {}
            for index in {k >> 1 for k in level}:
                left = level.get(index << 1, empty)
                right = level.get((index << 1) | 1, empty)
                parents[index] = node_hash(left, right)
            level = parents
        return level.get(0, self._empty[self.height]).hex()

    def get(self, key: int) -> str | None:
        """Return the value stored under ``key``, or None when absent."""
        self._check_key(key)
        return self._leaves.get(key)

    def set(self, key: int, value: str) -> str:
        """Insert or overwrite ``key`` and return the new root."""
        self._check_key(key)
        value = value.lower()
        if not _is_hex_32(value):
            raise ValueError("value must be 64 hex chars")
        self._leaves[key] = value
        self._root = None
        return self.root

    def clone(self) -> IndexedMerkleMap:
        """Independent copy; mutating the clone never touches this map."""
        return IndexedMerkleMap(self.height, dict(self._leaves))

    def entries(self) -> dict[int, str]:
        return dict(sorted(self._leaves.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._leaves

    def __len__(self) -> int:
        return len(self._leaves)

    def __repr__(self) -> str:
        return f"IndexedMerkleMap(height={self.height}, size={len(self)}, root={self.root[:12]}...)"
