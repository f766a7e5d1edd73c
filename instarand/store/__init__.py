"""
instarand.store
===============

Persistence for the engine's `EntropyState`.

The engine only needs two operations: read the last committed state (if any)
and overwrite it after a successful call. Backends are pluggable; this module
defines the protocol and an in-memory backend, `instarand.store.sqlite` a
file-backed one.

State is stored in its 64-byte encoding (`EntropyState.to_bytes`).
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..types import EntropyState


@runtime_checkable
class StateStore(Protocol):
    """Minimal state persistence interface."""

    def load(self) -> Optional[EntropyState]:
        """Return the last saved state, or None if nothing was saved yet."""
        ...

    def save(self, state: EntropyState) -> None:
        """Replace the saved state."""
        ...


class MemoryStateStore:
    """Process-local store; keeps the encoded bytes so reads return fresh objects."""

    def __init__(self, initial: Optional[EntropyState] = None) -> None:
        self._raw: Optional[bytes] = initial.to_bytes() if initial is not None else None

    def load(self) -> Optional[EntropyState]:
        if self._raw is None:
            return None
        return EntropyState.from_bytes(self._raw)

    def save(self, state: EntropyState) -> None:
        self._raw = state.to_bytes()


__all__ = [
    "StateStore",
    "MemoryStateStore",
]
