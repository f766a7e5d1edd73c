from __future__ import annotations

from typing import Any, Callable

import pytest
from prometheus_client import CollectorRegistry

from instarand.context import ExecutionContext, StaticContextProvider
from instarand.engine import RandomnessEngine
from instarand.events import EventLog
from instarand.metrics import Metrics

ALICE = bytes.fromhex("aa" * 20)
BOB = bytes.fromhex("bb" * 20)
DEPLOYER = bytes.fromhex("dd" * 20)


def _ctx(**overrides: Any) -> ExecutionContext:
    fields = dict(
        timestamp=1_700_000_000,
        block_random=0x1234_5678_9ABC,
        block_height=19_000_000,
        prev_block_hash=b"\x11" * 32,
        chain_id=1,
        caller=ALICE,
        origin=ALICE,
        gas_price=30 * 10**9,
        balance=0,
    )
    fields.update(overrides)
    return ExecutionContext(**fields)


@pytest.fixture
def make_ctx() -> Callable[..., ExecutionContext]:
    return _ctx


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)


@pytest.fixture
def provider() -> StaticContextProvider:
    return StaticContextProvider(_ctx())


@pytest.fixture
def engine(provider: StaticContextProvider, metrics: Metrics) -> RandomnessEngine:
    return RandomnessEngine(provider, deployer=DEPLOYER, metrics=metrics, log=EventLog())
