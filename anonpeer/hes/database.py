"""Persistent mailbox store of the hidden email service."""

from __future__ import annotations

import os
import shutil
import sqlite3
import threading

from anonpeer.encoding import bytes_to_uint64, uint64_to_bytes
from anonpeer.message import Message, Package

_DB_FILE = "entries.sqlite"


class DatabaseError(Exception):
    """Raised when the store cannot complete an operation."""


def key_size(key: bytes) -> bytes:
    """Storage key holding the number of messages of a receiver."""
    return b"database.users[" + bytes(key) + b"].size"


def key_message(key: bytes, index: int) -> bytes:
    """Storage key holding one message of a receiver."""
    return b"database.users[" + bytes(key) + b"].messages[" + str(index).encode("ascii") + b"]"


def key_hash(key: bytes) -> bytes:
    """Storage key marking a message hash as already stored."""
    return b"database.hashes[" + bytes(key) + b"]"


class KeyValueDB:
    """A thread-safe key-value store of messages grouped by receiver."""

    def __init__(self, path: str | os.PathLike) -> None:
        self._path = os.fspath(path)
        self._lock = threading.Lock()
        self._conn = self._open()

    def _open(self) -> sqlite3.Connection:
        try:
            os.makedirs(self._path, exist_ok=True)
            conn = sqlite3.connect(
                os.path.join(self._path, _DB_FILE), check_same_thread=False
            )
            with conn:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS entries "
                    "(key BLOB PRIMARY KEY, value BLOB NOT NULL)"
                )
        except (OSError, sqlite3.Error) as exc:
            raise DatabaseError(f"cannot open database {self._path!r}: {exc}") from exc
        return conn

    def _get(self, key: bytes) -> bytes | None:
        row = self._conn.execute(
            "SELECT value FROM entries WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else bytes(row[0])

    def _put(self, key: bytes, value: bytes) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO entries (key, value) VALUES (?, ?)", (key, value)
        )

    def size(self, key: bytes) -> int:
        """Return the number of messages stored for the receiver key."""
        with self._lock:
            raw = self._get(key_size(key))
        return 0 if raw is None else bytes_to_uint64(raw)

    def push(self, key: bytes, msg: Message) -> None:
        """Append msg to the receiver's mailbox; refuse a hash seen before."""
        with self._lock:
            hash_key = key_hash(msg.body.hash)
            if self._get(hash_key) is not None:
                raise DatabaseError("hash already exists")
            size_key = key_size(key)
            raw = self._get(size_key)
            size = 0 if raw is None else bytes_to_uint64(raw)
            try:
                with self._conn:
                    self._put(hash_key, b"\x01")
                    self._put(size_key, uint64_to_bytes(size + 1))
                    self._put(key_message(key, size), bytes(msg.to_package()))
            except sqlite3.Error as exc:
                raise DatabaseError(f"cannot store message: {exc}") from exc

    def load(self, key: bytes, index: int) -> Message:
        """Return the message at index in the receiver's mailbox."""
        with self._lock:
            raw = self._get(key_message(key, index))
        if raw is None:
            raise DatabaseError("message undefined")
        try:
            return Package(raw).to_message()
        except ValueError as exc:
            raise DatabaseError("stored message is corrupt") from exc

    def close(self) -> None:
        """Close the underlying store."""
        with self._lock:
            self._conn.close()

    def clean(self) -> None:
        """Delete every stored entry and start over with an empty store."""
        with self._lock:
            self._conn.close()
            try:
                shutil.rmtree(self._path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise DatabaseError(f"cannot remove database: {exc}") from exc
            self._conn = self._open()

    def __enter__(self) -> KeyValueDB:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()