"""
Engine events and the host-facing event log.

Events are immutable (name, args) records. Names are ASCII bytes; args map
identifier-like keys to bytes, uint256 ints or lists of uint256 ints, and are
frozen behind a read-only mapping once built, so an emitted event cannot be
rewritten by anyone holding a reference to it.

The three engine events are built by `random_generated`,
`batch_random_generated` and `weak_caller_data`. `EventLog` collects the
events of successful host-facing calls in emission order and renders them as
canonical receipt records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .constants import (
    EVENT_BATCH_RANDOM_GENERATED,
    EVENT_RANDOM_GENERATED,
    EVENT_WEAK_CALLER_DATA,
    UINT256_BITS,
)

# Basic bounds (generous; the engine's own events sit far below them).
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_LIST_LEN = 1024

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EventError(ValueError):
    """Raised when an event name or argument fails validation."""


@dataclass(frozen=True)
class Event:
    """
    An observability event produced by an engine call.

        name: event name bytes, e.g. b"RandomGenerated"
        args: ordered mapping of identifier-like keys to bytes / uint / uint list
    """

    name: bytes
    args: Mapping[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """
        Canonical, JSON-friendly representation:

            {"name": "RandomGenerated",
             "args": [{"k": "caller", "t": "b", "v": "0x.."},
                      {"k": "nonce",  "t": "i", "v": 0}, ...]}

        t="b" => bytes as 0x-prefixed hex, t="i" => integer,
        t="l" => list of integers.
        """
        enc: List[Dict[str, Any]] = []
        for k, v in self.args.items():
            if isinstance(v, (bytes, bytearray)):
                enc.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
            elif isinstance(v, int):
                enc.append({"k": k, "t": "i", "v": int(v)})
            else:
                enc.append({"k": k, "t": "l", "v": [int(x) for x in v]})
        return {"name": self.name.decode("ascii"), "args": enc}


# --- Validation helpers -------------------------------------------------------


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise EventError("event name must be bytes")
    b = bytes(name)
    if not b:
        raise EventError("event name must be non-empty")
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise EventError(f"event name too long ({len(b)} bytes)")
    return b


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise EventError("event key must be a non-empty str")
    if len(key) > MAX_KEY_LEN:
        raise EventError(f"event key too long ({len(key)})")
    if not _KEY_RE.match(key):
        raise EventError(f"event key has invalid characters: {key!r}")
    return key


def _check_uint(value: int, where: str) -> int:
    if value < 0 or value.bit_length() > UINT256_BITS:
        raise EventError(f"{where}: integer out of uint256 range")
    return int(value)


def _check_value(key: str, value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        if len(value) > MAX_BYTES_LEN:
            raise EventError(f"{key}: bytes arg too long ({len(value)})")
        return bytes(value)
    if isinstance(value, bool):
        raise EventError(f"{key}: bool args are not supported")
    if isinstance(value, int):
        return _check_uint(value, key)
    if isinstance(value, (list, tuple)):
        if len(value) > MAX_LIST_LEN:
            raise EventError(f"{key}: list arg too long ({len(value)})")
        out = []
        for i, item in enumerate(value):
            if isinstance(item, bool) or not isinstance(item, int):
                raise EventError(f"{key}[{i}]: list items must be int")
            out.append(_check_uint(item, f"{key}[{i}]"))
        return tuple(out)
    raise EventError(f"{key}: unsupported event arg type {type(value).__name__}")


def make_event(name: bytes, args: Mapping[str, Any]) -> Event:
    """Validate and build an event."""
    bname = _check_name(name)
    if not isinstance(args, Mapping):
        raise EventError("event args must be a mapping")
    checked: Dict[str, Any] = {}
    for raw_k, raw_v in args.items():
        k = _check_key(raw_k)
        checked[k] = _check_value(k, raw_v)
    return Event(bname, MappingProxyType(checked))


# --- Engine events ------------------------------------------------------------


def random_generated(caller: bytes, nonce: int, value: int) -> Event:
    return make_event(EVENT_RANDOM_GENERATED, {"caller": caller, "nonce": nonce, "value": value})


def batch_random_generated(caller: bytes, start_nonce: int, values: Sequence[int]) -> Event:
    return make_event(
        EVENT_BATCH_RANDOM_GENERATED,
        {"caller": caller, "startNonce": start_nonce, "values": tuple(values)},
    )


def weak_caller_data(caller: bytes, length: int) -> Event:
    return make_event(EVENT_WEAK_CALLER_DATA, {"caller": caller, "payloadLength": length})


# --- Host-facing log ----------------------------------------------------------


class EventLog:
    """Append-only, ordered record of events from successful calls."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def extend(self, events: Iterable[Event]) -> None:
        for ev in events:
            if not isinstance(ev, Event):
                raise EventError(f"expected Event, got {type(ev).__name__}")
            self._events.append(ev)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        # Iterate a stable snapshot
        return iter(tuple(self._events))

    def named(self, name: bytes) -> Tuple[Event, ...]:
        return tuple(ev for ev in self._events if ev.name == name)

    def for_receipt(self) -> List[Dict[str, Any]]:
        return [ev.to_dict() for ev in self._events]


__all__ = [
    "Event",
    "EventError",
    "EventLog",
    "make_event",
    "random_generated",
    "batch_random_generated",
    "weak_caller_data",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_LIST_LEN",
]
