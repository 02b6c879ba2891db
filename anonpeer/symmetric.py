"""AES-256-CBC encryption keyed by the SHA-256 of a secret."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher as _BlockCipher
from cryptography.hazmat.primitives.ciphers import algorithms, modes

from anonpeer.hashing import HASH_SIZE, Hasher
from anonpeer.prng import random_bytes

SYMM_KEY_TYPE = "anonpeer\\aes"
BLOCK_SIZE = 16


class CipherError(ValueError):
    """Raised when a ciphertext cannot be decrypted."""


def _pad(data: bytes) -> bytes:
    padding = BLOCK_SIZE - len(data) % BLOCK_SIZE
    return data + bytes([padding]) * padding


def _unpad(data: bytes) -> bytes:
    if not data:
        raise CipherError("empty plaintext")
    padding = data[-1]
    if len(data) < padding:
        raise CipherError("invalid padding")
    return data[: len(data) - padding]


class Cipher:
    """Symmetric cipher: random IV prepended, PKCS#7 padded CBC body."""

    key_type = SYMM_KEY_TYPE

    def __init__(self, key: bytes) -> None:
        self._key = bytes(Hasher(key))

    def _engine(self, iv: bytes) -> _BlockCipher:
        return _BlockCipher(algorithms.AES(self._key), modes.CBC(iv))

    def encrypt(self, msg: bytes) -> bytes:
        """Return IV || ciphertext of msg."""
        iv = random_bytes(BLOCK_SIZE)
        encryptor = self._engine(iv).encryptor()
        return iv + encryptor.update(_pad(bytes(msg))) + encryptor.finalize()

    def decrypt(self, msg: bytes) -> bytes:
        """Reverse encrypt; raise CipherError on malformed input."""
        msg = bytes(msg)
        if len(msg) < BLOCK_SIZE:
            raise CipherError("ciphertext shorter than one block")
        iv, body = msg[:BLOCK_SIZE], msg[BLOCK_SIZE:]
        if len(body) % BLOCK_SIZE:
            raise CipherError("ciphertext is not a whole number of blocks")
        decryptor = self._engine(iv).decryptor()
        return _unpad(decryptor.update(body) + decryptor.finalize())

    def size(self) -> int:
        return HASH_SIZE

    def __bytes__(self) -> bytes:
        return self._key

    def __str__(self) -> str:
        return f"Key({SYMM_KEY_TYPE}){{{self._key.hex().upper()}}}"