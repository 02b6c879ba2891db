import string

from anonpeer.prng import random_bytes, random_string, random_uint64

URL_ALPHABET = set(string.ascii_letters + string.digits + "-_=")


def test_random_bytes_length_and_variation():
    first, second = random_bytes(8), random_bytes(8)
    assert len(first) == 8
    assert len(second) == 8
    assert first != second


def test_random_bytes_zero():
    assert random_bytes(0) == b""


def test_random_string_length_alphabet_and_variation():
    first, second = random_string(8), random_string(8)
    assert len(first) == 8
    assert set(first) <= URL_ALPHABET
    assert first != second


def test_random_string_long():
    value = random_string(20)
    assert len(value) == 20
    assert set(value) <= URL_ALPHABET


def test_random_uint64_range_and_variation():
    first, second = random_uint64(), random_uint64()
    assert 0 <= first < 1 << 64
    assert 0 <= second < 1 << 64
    assert first != second