"""RSA keys: OAEP encryption and PSS signatures, PKCS#1 serialisation."""

from __future__ import annotations

import binascii

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from anonpeer.hashing import Hasher

ASYMM_KEY_TYPE = "anonpeer\\rsa"

_OAEP = padding.OAEP(
    mgf=padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)


class KeyError_(ValueError):
    """Raised when a key cannot be created, loaded or used."""


def _pss(salt_length) -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=salt_length)


class PubKey:
    """An RSA public key."""

    key_type = ASYMM_KEY_TYPE

    def __init__(self, key: rsa.RSAPublicKey) -> None:
        self._key = key

    def encrypt(self, msg: bytes) -> bytes:
        """Encrypt with RSA-OAEP(SHA-256)."""
        try:
            return self._key.encrypt(bytes(msg), _OAEP)
        except ValueError as exc:
            raise KeyError_(f"encryption failed: {exc}") from exc

    def address(self) -> str:
        """Short textual address: the truncated hash of the key bytes."""
        return str(Hasher(bytes(self)))

    def verify(self, msg: bytes, sig: bytes) -> bool:
        """Check an RSA-PSS(SHA-256) signature over msg."""
        try:
            self._key.verify(bytes(sig), bytes(msg), _pss(padding.PSS.AUTO), hashes.SHA256())
        except InvalidSignature:
            return False
        return True

    def size(self) -> int:
        """Modulus length in bits."""
        return self._key.key_size

    def __bytes__(self) -> bytes:
        return self._key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.PKCS1
        )

    def __str__(self) -> str:
        return f"Pub({ASYMM_KEY_TYPE}){{{bytes(self).hex().upper()}}}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PubKey):
            return NotImplemented
        return bytes(self) == bytes(other)

    def __hash__(self) -> int:
        return hash(bytes(self))

    def __repr__(self) -> str:
        return f"PubKey(size={self.size()}, address={self.address()!r})"


class PrivKey:
    """An RSA private key."""

    key_type = ASYMM_KEY_TYPE

    def __init__(self, key: rsa.RSAPrivateKey) -> None:
        self._key = key

    @classmethod
    def generate(cls, bits: int) -> PrivKey:
        """Generate a fresh key with a modulus of the given size."""
        try:
            return cls(rsa.generate_private_key(public_exponent=65537, key_size=bits))
        except ValueError as exc:
            raise KeyError_(f"cannot generate key: {exc}") from exc

    def decrypt(self, msg: bytes) -> bytes:
        """Decrypt an RSA-OAEP(SHA-256) ciphertext."""
        try:
            return self._key.decrypt(bytes(msg), _OAEP)
        except ValueError as exc:
            raise KeyError_("decryption failed") from exc

    def sign(self, msg: bytes) -> bytes:
        """Sign msg with RSA-PSS(SHA-256) and the longest salt."""
        return self._key.sign(bytes(msg), _pss(padding.PSS.MAX_LENGTH), hashes.SHA256())

    def pub_key(self) -> PubKey:
        return PubKey(self._key.public_key())

    def size(self) -> int:
        """Modulus length in bits."""
        return self._key.key_size

    def __bytes__(self) -> bytes:
        return self._key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )

    def __str__(self) -> str:
        return f"Priv({ASYMM_KEY_TYPE}){{{bytes(self).hex().upper()}}}"

    def __repr__(self) -> str:
        return f"PrivKey(size={self.size()})"


def _unwrap(text: str, kind: str) -> bytes:
    prefix = f"{kind}({ASYMM_KEY_TYPE}){{"
    if not text.startswith(prefix):
        raise KeyError_(f"key string must start with {prefix!r}")
    text = text[len(prefix):]
    if not text.endswith("}"):
        raise KeyError_("key string must end with '}'")
    try:
        return binascii.unhexlify(text[:-1])
    except ValueError as exc:
        raise KeyError_("key string holds invalid hex") from exc


def _read_tlv(data: bytes, pos: int, tag: int) -> tuple[bytes, int]:
    if pos + 2 > len(data) or data[pos] != tag:
        raise KeyError_("malformed PKCS#1 public key")
    length = data[pos + 1]
    pos += 2
    if length & 0x80:
        count = length & 0x7F
        if count == 0 or count > 4 or pos + count > len(data):
            raise KeyError_("malformed PKCS#1 public key")
        length = int.from_bytes(data[pos:pos + count], "big")
        pos += count
    end = pos + length
    if end > len(data):
        raise KeyError_("malformed PKCS#1 public key")
    return data[pos:end], end


def _parse_pkcs1_public(data: bytes) -> rsa.RSAPublicKey:
    body, end = _read_tlv(data, 0, 0x30)
    if end != len(data):
        raise KeyError_("trailing data after PKCS#1 public key")
    n_raw, pos = _read_tlv(body, 0, 0x02)
    e_raw, pos = _read_tlv(body, pos, 0x02)
    if pos != len(body):
        raise KeyError_("malformed PKCS#1 public key")
    modulus = int.from_bytes(n_raw, "big", signed=True)
    exponent = int.from_bytes(e_raw, "big", signed=True)
    if modulus <= 0 or exponent <= 0 or exponent > (1 << 31) - 1:
        raise KeyError_("invalid RSA public key parameters")
    try:
        return rsa.RSAPublicNumbers(exponent, modulus).public_key()
    except ValueError as exc:
        raise KeyError_(f"invalid RSA public key: {exc}") from exc


def load_priv_key(value: bytes | str) -> PrivKey:
    """Load a private key from PKCS#1 DER bytes or its string form."""
    if isinstance(value, str):
        return load_priv_key(_unwrap(value, "Priv"))
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"unsupported type {type(value).__name__}")
    data = bytes(value)
    try:
        key = serialization.load_der_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyError_("cannot parse private key") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyError_("not an RSA private key")
    priv = PrivKey(key)
    if bytes(priv) != data:
        raise KeyError_("not a PKCS#1 RSA private key")
    return priv


def load_pub_key(value: bytes | str) -> PubKey:
    """Load a public key from PKCS#1 DER bytes or its string form."""
    if isinstance(value, str):
        return load_pub_key(_unwrap(value, "Pub"))
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"unsupported type {type(value).__name__}")
    data = bytes(value)
    pub = PubKey(_parse_pkcs1_public(data))
    if bytes(pub) != data:
        raise KeyError_("non-canonical PKCS#1 public key")
    return pub