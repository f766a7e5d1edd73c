"""
instarand.utils
---------------
Small helpers shared across the engine: hashing and packed field encoding.
"""

from __future__ import annotations

from .hash import encode_packed, get_hash_fn, hash_packed, keccak256, sha3_256

__all__ = [
    "encode_packed",
    "get_hash_fn",
    "hash_packed",
    "keccak256",
    "sha3_256",
]
