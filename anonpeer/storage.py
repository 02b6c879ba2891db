"""Password-protected file storage for secrets such as private keys."""

from __future__ import annotations

import base64
import binascii
import json
import os

from anonpeer.fileutils import file_is_exist, read_file, write_file
from anonpeer.hashing import Hasher, raise_entropy
from anonpeer.prng import random_bytes
from anonpeer.settings import Key, Settings
from anonpeer.symmetric import Cipher


class StorageError(Exception):
    """Raised when the storage or one of its entries cannot be used."""


class Storage:
    """An encrypted file mapping (identifier, password) pairs to secrets.

    The file holds a salt followed by the encrypted JSON document.
    """

    def __init__(self, settings: Settings, path: str | os.PathLike, password: str) -> None:
        self._settings = settings
        self._path = os.fspath(path)
        skey_size = settings.get(Key.SIZE_SKEY)

        if self._exists():
            try:
                encdata = read_file(self._path)
            except OSError as exc:
                raise StorageError(f"cannot read storage: {exc}") from exc
            if len(encdata) < skey_size:
                raise StorageError("storage file is truncated")
            self._salt = encdata[:skey_size]
        else:
            self._salt = random_bytes(skey_size)

        ekey = raise_entropy(password.encode("utf-8"), self._salt, self._work())
        self._cipher = Cipher(ekey)

        if not self._exists():
            self.write("", "", b"")
        self._load()

    def write(self, ident: str, password: str, secret: bytes) -> None:
        """Store secret under the identifier and password."""
        secrets = self._load() if self._exists() else {}
        name, cipher = self._entry(ident, password)
        secrets[name] = cipher.encrypt(bytes(secret))
        self._save(secrets)

    def read(self, ident: str, password: str) -> bytes:
        """Return the secret stored under the identifier and password."""
        secrets = self._load_existing()
        name, cipher = self._entry(ident, password)
        try:
            encrypted = secrets[name]
        except KeyError:
            raise StorageError("key undefined") from None
        try:
            return cipher.decrypt(encrypted)
        except ValueError as exc:
            raise StorageError("cannot decrypt secret") from exc

    def delete(self, ident: str, password: str) -> None:
        """Remove the secret stored under the identifier and password."""
        secrets = self._load_existing()
        name, _ = self._entry(ident, password)
        if name not in secrets:
            raise StorageError("key undefined")
        del secrets[name]
        self._save(secrets)

    def _work(self) -> int:
        return self._settings.get(Key.SIZE_WORK)

    def _exists(self) -> bool:
        return file_is_exist(self._path)

    def _entry(self, ident: str, password: str) -> tuple[str, Cipher]:
        ekey = raise_entropy(
            password.encode("utf-8"),
            ident.encode("utf-8") + self._salt,
            self._work(),
        )
        return str(Hasher(ekey)), Cipher(ekey)

    def _load_existing(self) -> dict[str, bytes]:
        if not self._exists():
            raise StorageError("storage undefined")
        return self._load()

    def _load(self) -> dict[str, bytes]:
        try:
            encdata = read_file(self._path)
        except OSError as exc:
            raise StorageError(f"cannot read storage: {exc}") from exc
        try:
            plain = self._cipher.decrypt(encdata[self._settings.get(Key.SIZE_SKEY):])
            document = json.loads(plain)
        except ValueError as exc:
            raise StorageError("cannot decrypt storage") from exc
        if not isinstance(document, dict):
            raise StorageError("storage document is not an object")
        raw = document.get("secrets") or {}
        if not isinstance(raw, dict):
            raise StorageError("storage secrets are not an object")
        try:
            return {
                name: base64.b64decode(value or "", validate=True)
                for name, value in raw.items()
            }
        except (binascii.Error, TypeError) as exc:
            raise StorageError("storage holds an invalid secret") from exc

    def _save(self, secrets: dict[str, bytes]) -> None:
        document = {
            "secrets": {
                name: base64.b64encode(value).decode("ascii")
                for name, value in sorted(secrets.items())
            }
        }
        data = json.dumps(document, separators=(",", ":")).encode("ascii")
        try:
            write_file(self._path, self._salt + self._cipher.encrypt(data))
        except OSError as exc:
            raise StorageError(f"cannot write storage: {exc}") from exc