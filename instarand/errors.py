"""
Randomness engine errors.

A small, typed hierarchy of exceptions raised by the engine's input
validation. Callers can catch the base `RngError` to handle every rejected
call, or catch the concrete subclasses for more granular control.

Errors are plain (non-frozen) dataclasses whose `args` mirror their fields, so
they pickle and survive re-raising through context managers.

Every error is raised before the engine touches its state, so a caught
`RngError` always means the call left no trace. Each carries the offending
value(s), a stable machine-readable `code`, and `to_dict()` for RPC/CLI
surfaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .constants import MAX_CALLER_DATA_SIZE


class RngError(Exception):
    """Base class for all rejected engine calls."""

    code: str = "rng_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


@dataclass(eq=False)
class InvalidRange(RngError):
    """
    Raised by the ranged draw when `max <= min`.

    Attributes:
        min: The requested lower bound.
        max: The requested upper bound.
    """

    min: int
    max: int

    code = "invalid_range"

    def __post_init__(self) -> None:
        super().__init__(self.min, self.max)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidRange: min={self.min} max={self.max} (max must be > min)"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self), "min": self.min, "max": self.max}


@dataclass(eq=False)
class CallerDataTooLarge(RngError):
    """
    Raised when the caller payload exceeds the configured size limit.

    Attributes:
        length: Length of the rejected payload in bytes.
        limit: The limit that was exceeded.
    """

    length: int
    limit: int = MAX_CALLER_DATA_SIZE

    code = "caller_data_too_large"

    def __post_init__(self) -> None:
        super().__init__(self.length, self.limit)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"CallerDataTooLarge: length={self.length} > limit={self.limit}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "length": self.length,
            "limit": self.limit,
        }


@dataclass(eq=False)
class InvalidCount(RngError):
    """
    Raised by the batch draw when `count == 0` or `count` exceeds the limit.

    Attributes:
        count: The requested batch size.
    """

    count: int

    code = "invalid_count"

    def __post_init__(self) -> None:
        super().__init__(self.count)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidCount: count={self.count}"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self), "count": self.count}


__all__ = [
    "RngError",
    "InvalidRange",
    "CallerDataTooLarge",
    "InvalidCount",
]
