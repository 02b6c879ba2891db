"""Byte encodings shared by every layer of the package."""

from __future__ import annotations

import base64
import binascii
import struct

UINT64_SIZE = 8
MAX_UINT64 = 0xFFFF_FFFF_FFFF_FFFF

_UINT64 = struct.Struct(">Q")
_URL_TO_STD = bytes.maketrans(b"-_", b"+/")


def base64_encode(data: bytes) -> str:
    """Encode bytes with the padded URL-safe base64 alphabet."""
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii")


def base64_decode(data: str | bytes) -> bytes:
    """Decode padded URL-safe base64; raise ValueError on malformed input."""
    if isinstance(data, str):
        try:
            raw = data.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValueError("invalid base64 data") from exc
    else:
        raw = bytes(data)
    raw = raw.replace(b"\r", b"").replace(b"\n", b"")
    if b"+" in raw or b"/" in raw:
        raise ValueError("invalid base64 data: standard alphabet characters")
    try:
        return base64.b64decode(raw.translate(_URL_TO_STD), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 data: {exc}") from exc


def uint64_to_bytes(num: int) -> bytes:
    """Pack an unsigned 64-bit integer as eight big-endian bytes."""
    if not 0 <= num <= MAX_UINT64:
        raise ValueError(f"{num} does not fit in an unsigned 64-bit integer")
    return _UINT64.pack(num)


def bytes_to_uint64(data: bytes) -> int:
    """Read an unsigned 64-bit integer from the first eight big-endian bytes."""
    if len(data) < UINT64_SIZE:
        raise ValueError(f"need {UINT64_SIZE} bytes, got {len(data)}")
    return _UINT64.unpack(bytes(data[:UINT64_SIZE]))[0]