"""
instarand.engine: single-call randomness with an evolving entropy pool.

The engine owns one `EntropyState` (nonce, pool). Each call mixes the host's
execution context, the caller's payload and the current state through a hash,
then replaces the state so the next call, even an identical one from the same
caller in the same block, sees different input.

Call discipline
---------------
1. Validate every argument. A rejected call raises before anything else
   happens: no context is fetched, no state changes, no events are recorded.
2. Snapshot the state and fetch one `ExecutionContext`.
3. Compute all outputs, the successor state and the events from the snapshot.
4. Commit: persist the successor (if a store is attached), then swap it in.

Mixing formulas (``H`` = configured hash over tightly packed fields)
-------------------------------------------------------------------
seed:    pool  = H(timestamp, block_random, block_height, chain_id, deployer)
single:  value = H(timestamp, block_random, block_height, prev_block_hash,
                   caller, origin, gas_price, payload, nonce, pool, balance, 0)
evolve:  pool' = H(pool, value, timestamp)
batch:   S       = H(timestamp, block_random, block_height, prev_block_hash,
                     caller, origin, gas_price, payload, balance)
         value_i = H(S, nonce + i, e_i, i),  e_0 = pool,  e_{i+1} = evolve(e_i, value_i)

This is best-effort randomness: block producers see most of the inputs and
can bias outcomes. Do not use it where a single draw guards significant value.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .config import EngineConfig
from .constants import EVENT_WEAK_CALLER_DATA, HASH_KECCAK256, SINGLE_DRAW_INDEX, UINT256_MAX
from .context import ContextProvider, ExecutionContext, to_bytes
from .errors import CallerDataTooLarge, InvalidCount, InvalidRange, RngError
from .events import Event, EventLog, batch_random_generated, random_generated, weak_caller_data
from .metrics import METRICS, Metrics
from .store import StateStore
from .types import DrawResult, EntropyState
from .utils.hash import Field, encode_packed, get_hash_fn, hash_packed, pack_address

logger = logging.getLogger(__name__)


def _require_uint_arg(name: str, v: object) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be int, got {type(v).__name__}")
    if v < 0 or v > UINT256_MAX:
        raise ValueError(f"{name} must be a uint256, got {v}")
    return v


def _block_fields(ctx: ExecutionContext, payload: bytes) -> List[Field]:
    """Call-constant fields shared by the single-draw and batch formulas."""
    return [
        ("uint256", ctx.timestamp),
        ("uint256", ctx.block_random),
        ("uint256", ctx.block_height),
        ("bytes32", ctx.prev_block_hash),
        ("address", ctx.caller),
        ("address", ctx.origin),
        ("uint256", ctx.gas_price),
        ("bytes", payload),
    ]


def _single_fields(ctx: ExecutionContext, payload: bytes, state: EntropyState) -> List[Field]:
    return _block_fields(ctx, payload) + [
        ("uint256", state.nonce),
        ("uint256", state.pool),
        ("uint256", ctx.balance),
        ("uint256", SINGLE_DRAW_INDEX),
    ]


class RandomnessEngine:
    """
    Randomness engine bound to one context provider.

    Args:
        provider: supplies the execution context of each call.
        deployer: 20-byte identity of the deploying account (bytes or hex);
                  mixed into the initial pool.
        config:   limits and hash function; defaults to `EngineConfig()`.
        store:    optional persistence. If it already holds a state the engine
                  resumes from it instead of seeding.
        metrics:  Prometheus instruments; defaults to the module singleton.
        log:      host-facing event log the `get_*` entry points record into.
    """

    def __init__(
        self,
        provider: ContextProvider,
        *,
        deployer: bytes | str,
        config: Optional[EngineConfig] = None,
        store: Optional[StateStore] = None,
        metrics: Optional[Metrics] = None,
        log: Optional[EventLog] = None,
    ) -> None:
        cfg = config if config is not None else EngineConfig()
        cfg.validate()
        self._cfg = cfg
        self._hash = get_hash_fn(cfg.hash_fn)
        self._provider = provider
        self._store = store
        self._metrics = metrics if metrics is not None else METRICS
        self.log = log if log is not None else EventLog()

        resumed = store.load() if store is not None else None
        if resumed is not None:
            self._state = resumed
            logger.info("engine resumed from store nonce=%d", resumed.nonce)
            return

        deployer_b = pack_address(to_bytes(deployer))
        ctx = provider.current()
        pool = hash_packed(
            self._hash,
            [
                ("uint256", ctx.timestamp),
                ("uint256", ctx.block_random),
                ("uint256", ctx.block_height),
                ("uint256", ctx.chain_id),
                ("address", deployer_b),
            ],
        )
        state = EntropyState(nonce=0, pool=pool)
        if store is not None:
            store.save(state)
        self._state = state
        logger.info(
            "engine seeded chain_id=%d height=%d deployer=0x%s hash=%s",
            ctx.chain_id,
            ctx.block_height,
            deployer_b.hex(),
            cfg.hash_fn,
        )

    # ------------------------------------------------------------------ views

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    @property
    def state(self) -> EntropyState:
        """Immutable snapshot of the current state."""
        return self._state

    def current_nonce(self) -> int:
        return self._state.nonce

    # ---------------------------------------------------------------- helpers

    def _reject(self, err: RngError) -> RngError:
        self._metrics.record_rejected(err.code)
        logger.debug("call rejected code=%s detail=%s", err.code, err)
        return err

    def _check_payload(self, payload: object) -> bytes:
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError(f"payload must be bytes-like, got {type(payload).__name__}")
        data = bytes(payload)
        if len(data) > self._cfg.max_caller_data_size:
            raise self._reject(
                CallerDataTooLarge(length=len(data), limit=self._cfg.max_caller_data_size)
            )
        return data

    def _advisories(self, ctx: ExecutionContext, payload: bytes) -> List[Event]:
        if len(payload) < self._cfg.weak_caller_data_threshold:
            return [weak_caller_data(ctx.caller, len(payload))]
        return []

    def _evolve(self, pool: int, value: int, timestamp: int) -> int:
        return hash_packed(
            self._hash,
            [("uint256", pool), ("uint256", value), ("uint256", timestamp)],
        )

    def _record(self, kind: str, produced: int, events: Tuple[Event, ...]) -> None:
        self._metrics.record_draw(kind, produced=produced)
        if any(ev.name == EVENT_WEAK_CALLER_DATA for ev in events):
            self._metrics.record_weak_caller_data()

    def _commit(self, state: EntropyState) -> None:
        # Persist first: a failing store must not leave memory ahead of disk.
        if self._store is not None:
            self._store.save(state)
        self._state = state

    def _single(self, payload: bytes, kind: str) -> DrawResult:
        ctx = self._provider.current()
        events = self._advisories(ctx, payload)
        snap = self._state

        value = hash_packed(self._hash, _single_fields(ctx, payload, snap))
        successor = snap.advance(1, self._evolve(snap.pool, value, ctx.timestamp))
        events.append(random_generated(ctx.caller, snap.nonce, value))

        self._commit(successor)
        result = DrawResult(values=(value,), start_nonce=snap.nonce, events=tuple(events))
        self._record(kind, 1, result.events)
        logger.debug("draw kind=%s caller=0x%s nonce=%d", kind, ctx.caller.hex(), snap.nonce)
        return result

    # ------------------------------------------------------------- operations

    def draw(self, payload: bytes) -> DrawResult:
        """Produce one uint256."""
        data = self._check_payload(payload)
        return self._single(data, "single")

    def draw_in_range(self, payload: bytes, min_value: int, max_value: int) -> DrawResult:
        """
        Produce one value in ``[min_value, max_value]``.

        Reduces a single draw modulo the span. The result carries a bias of at
        most one part in ``2**256 / span``, negligible for any practical span;
        the reduction is kept as-is so results match other implementations of
        the same formula.
        """
        lo = _require_uint_arg("min", min_value)
        hi = _require_uint_arg("max", max_value)
        if hi <= lo:
            raise self._reject(InvalidRange(min=lo, max=hi))
        data = self._check_payload(payload)

        raw = self._single(data, "range")
        value = lo + raw.value % (hi - lo + 1)
        return DrawResult(values=(value,), start_nonce=raw.start_nonce, events=raw.events)

    def draw_many(self, payload: bytes, count: int) -> DrawResult:
        """Produce `count` pairwise-distinct values in one call."""
        n = _require_uint_arg("count", count)
        if n == 0 or n > self._cfg.max_count:
            raise self._reject(InvalidCount(count=n))
        data = self._check_payload(payload)

        ctx = self._provider.current()
        events = self._advisories(ctx, data)
        snap = self._state

        shared = self._hash(encode_packed(_block_fields(ctx, data) + [("uint256", ctx.balance)]))
        entropy = snap.pool
        values: List[int] = []
        for i in range(n):
            value = hash_packed(
                self._hash,
                [
                    ("bytes32", shared),
                    ("uint256", snap.nonce + i),
                    ("uint256", entropy),
                    ("uint256", i),
                ],
            )
            values.append(value)
            entropy = self._evolve(entropy, value, ctx.timestamp)

        successor = snap.advance(n, entropy)
        events.append(batch_random_generated(ctx.caller, snap.nonce, values))

        self._commit(successor)
        result = DrawResult(values=tuple(values), start_nonce=snap.nonce, events=tuple(events))
        self._record("batch", n, result.events)
        logger.debug(
            "draw kind=batch caller=0x%s start_nonce=%d count=%d", ctx.caller.hex(), snap.nonce, n
        )
        return result

    # ------------------------------------------------- host-facing entrypoints

    def get_random_number(self, payload: bytes) -> int:
        res = self.draw(payload)
        self.log.extend(res.events)
        return res.value

    def get_random_in_range(self, payload: bytes, min_value: int, max_value: int) -> int:
        res = self.draw_in_range(payload, min_value, max_value)
        self.log.extend(res.events)
        return res.value

    def get_multiple_random_numbers(self, payload: bytes, count: int) -> List[int]:
        res = self.draw_many(payload, count)
        self.log.extend(res.events)
        return list(res.values)

    def get_current_nonce(self) -> int:
        return self.current_nonce()


def replay_single(
    ctx: ExecutionContext,
    state: EntropyState,
    payload: bytes,
    *,
    hash_fn: str = HASH_KECCAK256,
) -> Tuple[int, int]:
    """
    Recompute a single draw off-line: returns ``(value, next_pool)``.

    Lets integrators verify an emitted RandomGenerated value given the
    block context and the engine state before the call.
    """
    h = get_hash_fn(hash_fn)
    value = hash_packed(h, _single_fields(ctx, bytes(payload), state))
    next_pool = hash_packed(h, [("uint256", state.pool), ("uint256", value), ("uint256", ctx.timestamp)])
    return value, next_pool


__all__ = ["RandomnessEngine", "replay_single"]
