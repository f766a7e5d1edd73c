"""
instarand constants.

Limits and event names shared by the engine, the event log and the CLI.
Networks may relax the operational limits through
`instarand.config.EngineConfig`; the values below are the defaults every
deployment starts from and the ones integrators can rely on.
"""

from __future__ import annotations

# -----------------------------
# Call limits
# -----------------------------
# Upper bound on caller-supplied entropy bytes per call (any entry point).
MAX_CALLER_DATA_SIZE: int = 10240
# Upper bound on values produced by one batch call.
MAX_COUNT: int = 100
# Payloads shorter than this are flagged with a WeakCallerData event.
WEAK_CALLER_DATA_THRESHOLD: int = 32

# -----------------------------
# Word sizes
# -----------------------------
UINT256_BITS: int = 256
UINT256_MAX: int = (1 << UINT256_BITS) - 1
WORD_BYTES: int = 32
ADDRESS_BYTES: int = 20

# Batch-index slot used by single draws.
SINGLE_DRAW_INDEX: int = 0

# -----------------------------
# Hash functions
# -----------------------------
HASH_KECCAK256: str = "keccak256"
HASH_SHA3_256: str = "sha3_256"
SUPPORTED_HASH_FNS = frozenset({HASH_KECCAK256, HASH_SHA3_256})

# -----------------------------
# Event names
# -----------------------------
EVENT_RANDOM_GENERATED: bytes = b"RandomGenerated"
EVENT_BATCH_RANDOM_GENERATED: bytes = b"BatchRandomGenerated"
EVENT_WEAK_CALLER_DATA: bytes = b"WeakCallerData"

__all__ = [
    "MAX_CALLER_DATA_SIZE",
    "MAX_COUNT",
    "WEAK_CALLER_DATA_THRESHOLD",
    "UINT256_BITS",
    "UINT256_MAX",
    "WORD_BYTES",
    "ADDRESS_BYTES",
    "SINGLE_DRAW_INDEX",
    "HASH_KECCAK256",
    "HASH_SHA3_256",
    "SUPPORTED_HASH_FNS",
    "EVENT_RANDOM_GENERATED",
    "EVENT_BATCH_RANDOM_GENERATED",
    "EVENT_WEAK_CALLER_DATA",
]
