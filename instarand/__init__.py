"""
instarand: single-call on-chain style randomness.

Callers get a pseudo-random uint256 (or a range-reduced value, or a batch of
up to 100 values) in one call. The engine keeps a nonce and an entropy pool
that evolve after every call, so repeated identical requests never repeat an
output.

Only light, stable exports are surfaced here:

    from instarand import RandomnessEngine, ExecutionContext, StaticContextProvider
"""

from __future__ import annotations

from .version import __version__
from .config import EngineConfig
from .context import ContextProvider, ExecutionContext, ScriptedContextProvider, StaticContextProvider
from .engine import RandomnessEngine
from .errors import CallerDataTooLarge, InvalidCount, InvalidRange, RngError
from .events import Event, EventLog
from .types import DrawResult, EntropyState

__all__ = [
    "__version__",
    "EngineConfig",
    "ContextProvider",
    "ExecutionContext",
    "ScriptedContextProvider",
    "StaticContextProvider",
    "RandomnessEngine",
    "RngError",
    "InvalidRange",
    "CallerDataTooLarge",
    "InvalidCount",
    "Event",
    "EventLog",
    "DrawResult",
    "EntropyState",
]
