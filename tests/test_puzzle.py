import hashlib

import pytest

from anonpeer.hashing import Hasher
from anonpeer.puzzle import Puzzle


def test_proof_and_verify():
    puzzle = Puzzle(10)
    pack_hash = bytearray(bytes(Hasher(b"hello, world!")))
    proof = puzzle.proof(bytes(pack_hash))

    assert puzzle.verify(bytes(pack_hash), proof) is True
    assert Puzzle(25).verify(bytes(pack_hash), proof) is False

    pack_hash[3] ^= 8
    assert puzzle.verify(bytes(pack_hash), proof) is False


def test_proof_is_smallest_solution():
    puzzle = Puzzle(8)
    pack_hash = bytes(Hasher(b"some package"))
    proof = puzzle.proof(pack_hash)
    assert puzzle.verify(pack_hash, proof) is True
    assert not any(puzzle.verify(pack_hash, nonce) for nonce in range(proof))


def test_proof_hash_has_leading_zero_bits():
    pack_hash = bytes(Hasher(b"data"))
    proof = Puzzle(12).proof(pack_hash)
    digest = hashlib.sha256(pack_hash + proof.to_bytes(8, "big")).digest()
    assert int.from_bytes(digest, "big") >> (256 - 12) == 0


def test_zero_difficulty_accepts_first_nonce():
    assert Puzzle(0).proof(b"anything") == 0
    assert Puzzle(0).verify(b"anything", 12345) is True


def test_difficulty_wraps_like_a_byte():
    assert Puzzle(256).diff == 0
    assert Puzzle(266).diff == 10


def test_verify_rejects_out_of_range_nonce():
    with pytest.raises(ValueError):
        Puzzle(1).verify(b"x", 1 << 64)