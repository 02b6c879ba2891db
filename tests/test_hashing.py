import hashlib

import pytest

from anonpeer.encoding import base64_decode
from anonpeer.hashing import (
    HASH_KEY_TYPE,
    HMAC_KEY_TYPE,
    HMACHasher,
    Hasher,
    raise_entropy,
)


def test_hash_is_determined_and_sensitive():
    msg = bytearray(b"hello, world!")
    digest = str(Hasher(bytes(msg)))
    assert digest == str(Hasher(bytes(msg)))

    msg[3] ^= 8
    assert digest != str(Hasher(bytes(msg))) and len(digest) == 28


def test_sha256_known_vector():
    expected = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert bytes(Hasher(b"abc")).hex() == expected


def test_string_is_truncated_digest():
    hasher = Hasher(b"abc")
    text = str(hasher)
    assert len(text) == 28
    assert base64_decode(text) == bytes(hasher)[:20]


def test_hasher_metadata():
    hasher = Hasher(b"x")
    assert hasher.size() == 32
    assert hasher.key_type == HASH_KEY_TYPE
    assert hasher == Hasher(b"x")


def test_hmac_known_vector():
    expected = "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
    assert bytes(HMACHasher(b"Jefe", b"what do ya want for nothing?")).hex() == expected


def test_hmac_metadata():
    mac = HMACHasher(b"k", b"data")
    assert mac.size() == 32
    assert mac.key_type == HMAC_KEY_TYPE
    assert len(str(mac)) == 28
    assert base64_decode(str(mac)) == bytes(mac)[:20]


def test_raise_entropy():
    msg = b"hello, world!"
    salt = b"it's a salt!"
    stretched = raise_entropy(msg, salt, 10)
    assert stretched != bytes(Hasher(msg))
    assert stretched == raise_entropy(msg, salt, 10)
    assert len(stretched) == 32


def test_raise_entropy_single_round():
    assert raise_entropy(b"a", b"b", 0) == hashlib.sha256(b"ab").digest()


def test_raise_entropy_two_rounds():
    first = hashlib.sha256(b"ab").digest()
    assert raise_entropy(b"a", b"b", 1) == hashlib.sha256(first + b"b").digest()


def test_raise_entropy_overflowing_shift_is_identity():
    assert raise_entropy(b"info", b"salt", 64) == b"info"


def test_raise_entropy_negative_bits():
    with pytest.raises(ValueError):
        raise_entropy(b"a", b"b", -1)