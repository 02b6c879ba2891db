"""Hash-based proof of work."""

from __future__ import annotations

import hashlib

from anonpeer.encoding import MAX_UINT64, uint64_to_bytes
from anonpeer.hashing import HASH_SIZE


class Puzzle:
    """Find a nonce whose hash with the data starts with `diff` zero bits."""

    __slots__ = ("_diff",)

    def __init__(self, diff: int) -> None:
        self._diff = diff & 0xFF

    @property
    def diff(self) -> int:
        return self._diff

    def _target(self) -> int:
        return 1 << (HASH_SIZE * 8 - self._diff)

    @staticmethod
    def _value(pack_hash: bytes, nonce: int) -> int:
        digest = hashlib.sha256(bytes(pack_hash) + uint64_to_bytes(nonce)).digest()
        return int.from_bytes(digest, "big")

    def proof(self, pack_hash: bytes) -> int:
        """Return the smallest nonce that solves the puzzle for pack_hash."""
        target = self._target()
        for nonce in range(MAX_UINT64):
            if self._value(pack_hash, nonce) < target:
                return nonce
        return MAX_UINT64

    def verify(self, pack_hash: bytes, nonce: int) -> bool:
        """Check that nonce solves the puzzle for pack_hash."""
        return self._value(pack_hash, nonce) < self._target()

    def __repr__(self) -> str:
        return f"Puzzle({self._diff})"