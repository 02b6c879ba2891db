"""SHA-256 and HMAC-SHA-256 digests, and iterated key stretching."""

from __future__ import annotations

import hashlib
import hmac

from anonpeer.encoding import base64_encode

TRUNCATED_SIZE = 20
HASH_SIZE = 32
HASH_KEY_TYPE = "anonpeer\\sha256"
HMAC_KEY_TYPE = "anonpeer\\hmac-sha256"


def _truncated_text(digest: bytes) -> str:
    return base64_encode(digest[:TRUNCATED_SIZE])


class _Digest:
    __slots__ = ("_digest",)
    key_type = ""

    def __init__(self, digest: bytes) -> None:
        self._digest = digest

    def size(self) -> int:
        return HASH_SIZE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Digest):
            return NotImplemented
        return type(self) is type(other) and self._digest == other._digest

    def __hash__(self) -> int:
        return hash(self._digest)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._digest.hex()})"


class Hasher(_Digest):
    """SHA-256 digest of data; str() gives its truncated base64 form."""

    __slots__ = ()
    key_type = HASH_KEY_TYPE

    def __init__(self, data: bytes) -> None:
        super().__init__(hashlib.sha256(data).digest())

    def __bytes__(self) -> bytes:
        return self._digest

    def __str__(self) -> str:
        return _truncated_text(self._digest)


class HMACHasher(_Digest):
    """HMAC-SHA-256 of data under key; str() gives its truncated base64 form."""

    __slots__ = ()
    key_type = HMAC_KEY_TYPE

    def __init__(self, key: bytes, data: bytes) -> None:
        super().__init__(hmac.new(key, data, hashlib.sha256).digest())

    def __bytes__(self) -> bytes:
        return self._digest

    def __str__(self) -> str:
        return _truncated_text(self._digest)


def raise_entropy(info: bytes, salt: bytes, bits: int) -> bytes:
    """Hash info together with salt 2**bits times in a row."""
    if bits < 0:
        raise ValueError("bits must not be negative")
    # A shift of 64 or more overflows a 64-bit counter to zero rounds.
    rounds = 1 << bits if bits < 64 else 0
    for _ in range(rounds):
        info = hashlib.sha256(info + salt).digest()
    return info