"""Friend-to-friend mode: accept messages only from known public keys."""

from __future__ import annotations

import threading

from anonpeer.asymmetric import PubKey


class F2F:
    """A thread-safe switch together with a list of trusted public keys."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._friends: dict[str, PubKey] = {}

    def status(self) -> bool:
        """Return True when friend-to-friend mode is on."""
        with self._lock:
            return self._enabled

    def switch(self) -> None:
        """Turn friend-to-friend mode on if it is off, and off if it is on."""
        with self._lock:
            self._enabled = not self._enabled

    def in_list(self, pub: PubKey) -> bool:
        """Return True when the public key belongs to a friend."""
        with self._lock:
            return pub.address() in self._friends

    def friends(self) -> list[PubKey]:
        """Return the public keys of all friends."""
        with self._lock:
            return list(self._friends.values())

    def append(self, pub: PubKey) -> None:
        """Add a public key to the friends."""
        with self._lock:
            self._friends[pub.address()] = pub

    def remove(self, pub: PubKey) -> None:
        """Remove a public key from the friends, if it is there."""
        with self._lock:
            self._friends.pop(pub.address(), None)