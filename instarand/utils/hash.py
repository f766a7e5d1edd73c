"""
instarand.utils.hash
====================

Hash primitives and the packed field encoding the engine mixes through.

Packed encoding
---------------
Fields are concatenated with no length prefixes and no padding between them:

- ``uint256``: 32-byte big-endian, value in ``[0, 2**256)``
- ``address``: raw 20 bytes
- ``bytes32``: raw 32 bytes
- ``bytes``:   raw bytes of any length

This is the layout contract hosts commonly hash (tightly packed ABI), which
keeps outputs reproducible by off-chain verifiers that only know the formula.
Only one ``bytes`` field may appear per hash in the engine's formulas, so the
concatenation stays unambiguous.

Hash functions
--------------
- :func:`keccak256`: Keccak-256 (pre-standard SHA-3 padding) via PyCryptodome.
- :func:`sha3_256`:  FIPS-202 SHA3-256 via :mod:`hashlib`.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Dict, Sequence, Tuple

from Crypto.Hash import keccak as _keccak

from ..constants import (
    ADDRESS_BYTES,
    HASH_KECCAK256,
    HASH_SHA3_256,
    UINT256_MAX,
    WORD_BYTES,
)

HashFn = Callable[[bytes], bytes]
Field = Tuple[str, object]

__all__ = [
    "HashFn",
    "Field",
    "keccak256",
    "sha3_256",
    "get_hash_fn",
    "pack_uint256",
    "pack_address",
    "pack_bytes32",
    "encode_packed",
    "hash_packed",
    "to_uint256",
]


# -------------------------
# One-shot primitives
# -------------------------


def _ensure_bytes(data: object, name: str) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"{name} must be bytes-like (got {type(data).__name__})")


def keccak256(data: bytes) -> bytes:
    """Return Keccak-256(data)."""
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def sha3_256(data: bytes) -> bytes:
    """Return SHA3-256(data)."""
    return hashlib.sha3_256(_ensure_bytes(data, "data")).digest()


_HASH_FNS: Dict[str, HashFn] = {
    HASH_KECCAK256: keccak256,
    HASH_SHA3_256: sha3_256,
}


def get_hash_fn(name: str) -> HashFn:
    try:
        return _HASH_FNS[name]
    except KeyError:
        raise ValueError(f"Unsupported hash function: {name!r}") from None


# -------------------------
# Packed encoding
# -------------------------


def pack_uint256(value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"uint256 must be int (got {type(value).__name__})")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD_BYTES, "big")


def pack_address(value: bytes) -> bytes:
    b = _ensure_bytes(value, "address")
    if len(b) != ADDRESS_BYTES:
        raise ValueError(f"address must be exactly {ADDRESS_BYTES} bytes (got {len(b)})")
    return b


def pack_bytes32(value: bytes) -> bytes:
    b = _ensure_bytes(value, "bytes32")
    if len(b) != WORD_BYTES:
        raise ValueError(f"bytes32 must be exactly {WORD_BYTES} bytes (got {len(b)})")
    return b


_PACKERS: Dict[str, Callable[[object], bytes]] = {
    "uint256": pack_uint256,  # type: ignore[dict-item]
    "address": pack_address,  # type: ignore[dict-item]
    "bytes32": pack_bytes32,  # type: ignore[dict-item]
    "bytes": lambda v: _ensure_bytes(v, "bytes"),
}


def encode_packed(fields: Sequence[Field]) -> bytes:
    """
    Tightly pack ``(type, value)`` pairs.

    >>> encode_packed([("uint256", 1), ("bytes", b"ab")]).hex()[-6:]
    '016162'
    """
    out = bytearray()
    for i, (typ, value) in enumerate(fields):
        packer = _PACKERS.get(typ)
        if packer is None:
            raise ValueError(f"field[{i}]: unsupported packed type {typ!r}")
        out += packer(value)
    return bytes(out)


def to_uint256(digest: bytes) -> int:
    """Interpret a 32-byte digest as a big-endian uint256."""
    return int.from_bytes(pack_bytes32(digest), "big")


def hash_packed(hash_fn: HashFn, fields: Sequence[Field]) -> int:
    """``uint256(hash_fn(encode_packed(fields)))``"""
    return to_uint256(hash_fn(encode_packed(fields)))
