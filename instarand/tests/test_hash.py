from __future__ import annotations

import pytest

from instarand.utils.hash import (
    encode_packed,
    get_hash_fn,
    hash_packed,
    keccak256,
    pack_address,
    pack_uint256,
    sha3_256,
    to_uint256,
)

KECCAK_EMPTY = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
SHA3_EMPTY = "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"


def test_known_empty_digests():
    assert keccak256(b"").hex() == KECCAK_EMPTY
    assert sha3_256(b"").hex() == SHA3_EMPTY
    assert keccak256(b"") != sha3_256(b"")


def test_get_hash_fn():
    assert get_hash_fn("keccak256") is keccak256
    assert get_hash_fn("sha3_256") is sha3_256
    with pytest.raises(ValueError):
        get_hash_fn("sha256")


def test_hash_rejects_text():
    with pytest.raises(TypeError):
        keccak256("abc")  # type: ignore[arg-type]


def test_encode_packed_layout():
    out = encode_packed(
        [
            ("uint256", 1),
            ("address", b"\xaa" * 20),
            ("bytes32", b"\x01" * 32),
            ("bytes", b"hi"),
        ]
    )
    assert len(out) == 32 + 20 + 32 + 2
    assert out[:32] == b"\x00" * 31 + b"\x01"
    assert out[32:52] == b"\xaa" * 20
    assert out[52:84] == b"\x01" * 32
    assert out[84:] == b"hi"


def test_encode_packed_empty_bytes_contributes_nothing():
    assert encode_packed([("uint256", 7), ("bytes", b"")]) == (7).to_bytes(32, "big")


@pytest.mark.parametrize(
    ("fields", "exc"),
    [
        ([("uint256", -1)], ValueError),
        ([("uint256", 2**256)], ValueError),
        ([("uint256", True)], TypeError),
        ([("uint256", "1")], TypeError),
        ([("address", b"\x00" * 19)], ValueError),
        ([("bytes32", b"\x00" * 33)], ValueError),
        ([("bytes", "text")], TypeError),
        ([("int8", 1)], ValueError),
    ],
)
def test_encode_packed_rejects(fields, exc):
    with pytest.raises(exc):
        encode_packed(fields)


def test_pack_helpers():
    assert pack_uint256(2**256 - 1) == b"\xff" * 32
    assert pack_address(bytearray(20)) == b"\x00" * 20


def test_to_uint256_and_hash_packed():
    assert to_uint256(b"\x00" * 31 + b"\x05") == 5
    with pytest.raises(ValueError):
        to_uint256(b"\x00" * 20)

    fields = [("uint256", 42), ("bytes", b"abc")]
    assert hash_packed(keccak256, fields) == int.from_bytes(keccak256(encode_packed(fields)), "big")
