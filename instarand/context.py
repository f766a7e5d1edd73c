"""
instarand.context: per-call execution metadata supplied by the host.

The engine never reads a clock, a chain or an account table itself. Every
call it asks an injected `ContextProvider` for one `ExecutionContext`
snapshot, uses it as hash input, and drops it when the call ends.

Design notes
------------
- Addresses are raw 20-byte values; hex strings (with or without "0x") are
  accepted by the constructors and normalized to bytes.
- `block_random` is the host's per-block random seed (prevrandao-style);
  hosts that expose none pass 0.
- `prev_block_hash` is the 32-byte hash of the block before `block_height`.
- All numeric fields are validated to be uint256.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Iterable, Iterator, Mapping, Protocol, Union, runtime_checkable

from .constants import ADDRESS_BYTES, UINT256_MAX, WORD_BYTES

BytesLike = Union[bytes, bytearray, memoryview, str]


class ContextError(ValueError):
    """Validation or coercion failure for ExecutionContext."""


# ----------------------------- helpers ----------------------------- #


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: BytesLike) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _require_uint256(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0 or v > UINT256_MAX:
        raise ContextError(f"{name} must be a uint256, got {v}")
    return v


def _require_sized(name: str, v: Any, size: int) -> bytes:
    b = to_bytes(v)
    if len(b) != size:
        raise ContextError(f"{name} must be exactly {size} bytes, got {len(b)}")
    return b


_INT_FIELDS = ("timestamp", "block_random", "block_height", "chain_id", "gas_price", "balance")
_ADDRESS_FIELDS = ("caller", "origin")


# ----------------------------- model ------------------------------- #


@dataclass(frozen=True)
class ExecutionContext:
    """
    Read-only metadata for one engine call.

    Fields
    ------
    timestamp:       Consensus timestamp of the executing block.
    block_random:    Per-block random seed exposed by the host (0 if none).
    block_height:    Height of the executing block.
    prev_block_hash: 32-byte hash of the previous block.
    chain_id:        Integer chain identifier.
    caller:          Immediate caller address (20 bytes).
    origin:          Transaction originator address (20 bytes).
    gas_price:       Fee price of the executing transaction.
    balance:         The engine's own balance.
    """

    timestamp: int
    block_random: int
    block_height: int
    prev_block_hash: bytes
    chain_id: int
    caller: bytes
    origin: bytes
    gas_price: int = 0
    balance: int = 0

    def __post_init__(self) -> None:
        for name in _INT_FIELDS:
            object.__setattr__(self, name, _require_uint256(name, getattr(self, name)))
        for name in _ADDRESS_FIELDS:
            object.__setattr__(self, name, _require_sized(name, getattr(self, name), ADDRESS_BYTES))
        object.__setattr__(
            self, "prev_block_hash", _require_sized("prev_block_hash", self.prev_block_hash, WORD_BYTES)
        )

    # ---- constructors ---- #

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ExecutionContext":
        """
        Build from a plain mapping (JSON/YAML documents, RPC payloads).
        Accepts snake_case keys and the camelCase spellings hosts commonly use.
        """

        def _pick(*keys: str, default: Any = None) -> Any:
            for k in keys:
                if k in d and d[k] is not None:
                    return d[k]
            return default

        def _int(v: Any) -> Any:
            # hex strings ("0x..") are common for large quantities in JSON
            if isinstance(v, str):
                try:
                    return int(v, 0)
                except ValueError as e:
                    raise ContextError(f"invalid integer: {v!r}") from e
            return v

        return cls(
            timestamp=_int(_pick("timestamp")),
            block_random=_int(_pick("block_random", "blockRandom", "prevrandao", default=0)),
            block_height=_int(_pick("block_height", "blockHeight", "number")),
            prev_block_hash=_pick("prev_block_hash", "prevBlockHash", "parentHash"),
            chain_id=_int(_pick("chain_id", "chainId")),
            caller=_pick("caller", "sender"),
            origin=_pick("origin", "txOrigin", "caller", "sender"),
            gas_price=_int(_pick("gas_price", "gasPrice", default=0)),
            balance=_int(_pick("balance", default=0)),
        )

    # ---- views ---- #

    def with_caller(self, caller: BytesLike, origin: BytesLike | None = None) -> "ExecutionContext":
        """Copy of this context as seen from another caller."""
        c = to_bytes(caller)
        return replace(self, caller=c, origin=to_bytes(origin) if origin is not None else c)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["prev_block_hash"] = to_hex(self.prev_block_hash)
        d["caller"] = to_hex(self.caller)
        d["origin"] = to_hex(self.origin)
        return d


# ----------------------------- providers --------------------------- #


@runtime_checkable
class ContextProvider(Protocol):
    """Supplies the execution context of the call currently being executed."""

    def current(self) -> ExecutionContext: ...


class StaticContextProvider:
    """Always returns the same snapshot; callers may swap it between calls."""

    def __init__(self, ctx: ExecutionContext) -> None:
        self.ctx = ctx

    def current(self) -> ExecutionContext:
        return self.ctx


class ScriptedContextProvider:
    """
    Replays a fixed sequence of snapshots, one per `current()` call.

    Useful for tests that need the context to move (new blocks, new callers)
    in a reproducible way. Raises `ContextError` when the script runs out.
    """

    def __init__(self, snapshots: Iterable[ExecutionContext]) -> None:
        self._it: Iterator[ExecutionContext] = iter(snapshots)

    def current(self) -> ExecutionContext:
        try:
            return next(self._it)
        except StopIteration:
            raise ContextError("context script exhausted") from None


__all__ = [
    "ContextError",
    "ContextProvider",
    "ExecutionContext",
    "ScriptedContextProvider",
    "StaticContextProvider",
    "to_bytes",
    "to_hex",
]
