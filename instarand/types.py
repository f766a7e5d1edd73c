"""
Core typed values for the randomness engine.

Types provided:
  • EntropyState: the engine's persistent (nonce, pool) pair
  • DrawResult: values produced by one successful call plus its events

Both are immutable. The engine evolves its state by replacing the whole
`EntropyState` at the end of a call, never by mutating it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .constants import UINT256_MAX, WORD_BYTES
from .events import Event

_STATE_BYTES = 2 * WORD_BYTES


def _require_uint256(name: str, v: int) -> None:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be int")
    if v < 0 or v > UINT256_MAX:
        raise ValueError(f"{name} must be a uint256 (got {v})")


@dataclass(frozen=True, slots=True)
class EntropyState:
    """
    Persistent engine state.

    Fields:
      nonce: number of values produced so far
      pool: running entropy accumulator
    """

    nonce: int
    pool: int

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_uint256("nonce", self.nonce)
        _require_uint256("pool", self.pool)

    def advance(self, produced: int, pool: int) -> "EntropyState":
        """Return the successor state after `produced` values."""
        return EntropyState(nonce=self.nonce + produced, pool=pool)

    def to_bytes(self) -> bytes:
        """Encode as 64 bytes: nonce || pool, both big-endian."""
        return self.nonce.to_bytes(WORD_BYTES, "big") + self.pool.to_bytes(WORD_BYTES, "big")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "EntropyState":
        if len(raw) != _STATE_BYTES:
            raise ValueError(f"state must be exactly {_STATE_BYTES} bytes (got {len(raw)})")
        return cls(
            nonce=int.from_bytes(raw[:WORD_BYTES], "big"),
            pool=int.from_bytes(raw[WORD_BYTES:], "big"),
        )

    def to_dict(self) -> dict:
        return {"nonce": self.nonce, "pool": "0x" + self.pool.to_bytes(WORD_BYTES, "big").hex()}


@dataclass(frozen=True, slots=True)
class DrawResult:
    """
    Outcome of one successful engine call.

    Fields:
      values: produced values (one for single/ranged draws)
      start_nonce: nonce consumed by values[0]
      events: observability events, in emission order
    """

    values: Tuple[int, ...]
    start_nonce: int
    events: Tuple[Event, ...] = field(default=())

    @property
    def value(self) -> int:
        """The first (for single and ranged draws, the only) value."""
        return self.values[0]

    def to_dict(self) -> dict:
        return {
            "values": list(self.values),
            "startNonce": self.start_nonce,
            "events": [ev.to_dict() for ev in self.events],
        }


__all__ = ["EntropyState", "DrawResult"]
