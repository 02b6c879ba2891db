"""Cryptographically strong random values."""

from __future__ import annotations

import secrets

from anonpeer.encoding import base64_encode, bytes_to_uint64


def random_bytes(n: int) -> bytes:
    """Return n random bytes from the operating system's CSPRNG."""
    return secrets.token_bytes(n)


def random_string(n: int) -> str:
    """Return a random string of n URL-safe base64 characters."""
    return base64_encode(random_bytes(n))[:n]


def random_uint64() -> int:
    """Return a random unsigned 64-bit integer."""
    return bytes_to_uint64(random_bytes(8))