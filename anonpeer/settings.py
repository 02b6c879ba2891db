"""Thread-safe numeric settings shared by clients and nodes."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from enum import IntEnum

from anonpeer.encoding import MAX_UINT64


class Key(IntEnum):
    """Names of the tunable parameters."""

    MASK_ROUT = 1
    TIME_WAIT = 2
    TIME_PSDO = 3
    SIZE_PSDO = 4
    SIZE_RTRY = 5
    SIZE_WORK = 6
    SIZE_CONN = 7
    SIZE_PACK = 8
    SIZE_MAPP = 9
    SIZE_SKEY = 10


_DEFAULTS: dict[int, int] = {
    Key.MASK_ROUT: 0xFFFF_FFFF_FFFF_FFFF,  # marks route/response packages
    Key.TIME_WAIT: 20,  # seconds
    Key.TIME_PSDO: 5000,  # milliseconds
    Key.SIZE_PSDO: 10 << 10,  # 10 KiB
    Key.SIZE_RTRY: 3,  # attempts
    Key.SIZE_WORK: 20,  # bits of proof of work
    Key.SIZE_CONN: 10,  # connections
    Key.SIZE_PACK: 8 << 20,  # 8 MiB
    Key.SIZE_MAPP: 2 << 10,  # remembered hashes
    Key.SIZE_SKEY: 1 << 5,  # 32 bytes
}

_FAST: dict[int, int] = {
    Key.MASK_ROUT: 0xFFFF_FFFF_FFFF_FFFF,
    Key.TIME_WAIT: 50,
    Key.TIME_PSDO: 1000,
    Key.SIZE_RTRY: 1,
    Key.SIZE_WORK: 10,
    Key.SIZE_CONN: 10,
    Key.SIZE_PACK: 1 << 20,
    Key.SIZE_MAPP: 1 << 10,
    Key.SIZE_SKEY: 1 << 4,
}


class Settings:
    """A mutable, lock-protected mapping from Key to unsigned 64-bit values."""

    def __init__(self, values: Mapping[int, int] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[int, int] = dict(_DEFAULTS)
        for key, value in (values or {}).items():
            self.set(key, value)

    def set(self, key: int, value: int) -> Settings:
        """Store a value and return self, so calls can be chained."""
        if not 0 <= value <= MAX_UINT64:
            raise ValueError(f"setting value {value} is not an unsigned 64-bit integer")
        with self._lock:
            self._values[key] = value
        return self

    def get(self, key: int) -> int:
        """Return the value for key; raise KeyError if it was never set."""
        with self._lock:
            try:
                return self._values[key]
            except KeyError:
                raise KeyError(f"settings: value undefined for {key!r}") from None


def fast_settings() -> Settings:
    """Settings with small work factors and sizes, for quick local runs."""
    return Settings(_FAST)