from __future__ import annotations

import copy
import pickle
from contextlib import contextmanager

import pytest

from instarand.constants import MAX_CALLER_DATA_SIZE
from instarand.errors import CallerDataTooLarge, InvalidCount, InvalidRange, RngError

PAYLOAD = b"x" * 32


@contextmanager
def _span(seen):
    try:
        yield
    except RngError as e:
        seen.append(e.code)
        raise


@pytest.mark.parametrize(
    ("call", "exc"),
    [
        (lambda e: e.get_random_in_range(PAYLOAD, 10, 5), InvalidRange),
        (lambda e: e.get_multiple_random_numbers(PAYLOAD, 0), InvalidCount),
        (lambda e: e.get_random_number(b"\x00" * (MAX_CALLER_DATA_SIZE + 1)), CallerDataTooLarge),
    ],
    ids=["range", "count", "payload"],
)
def test_errors_propagate_through_context_managers(engine, call, exc):
    seen = []
    with pytest.raises(exc):
        with _span(seen):
            call(engine)
    assert seen == [exc.code]
    assert engine.current_nonce() == 0


@contextmanager
def _quiet():
    yield


def test_error_raised_inside_plain_context_manager(engine):
    with pytest.raises(InvalidRange) as excinfo:
        with _quiet():
            engine.get_random_in_range(PAYLOAD, 7, 7)
    assert excinfo.value.to_dict()["min"] == 7


@pytest.mark.parametrize(
    "err",
    [
        InvalidRange(min=10, max=5),
        CallerDataTooLarge(length=MAX_CALLER_DATA_SIZE + 1),
        CallerDataTooLarge(length=65, limit=64),
        InvalidCount(count=101),
    ],
)
def test_errors_pickle_and_copy(err):
    for clone in (pickle.loads(pickle.dumps(err)), copy.copy(err)):
        assert type(clone) is type(err)
        assert clone.to_dict() == err.to_dict()
        assert str(clone) == str(err)


def test_args_mirror_fields():
    assert InvalidRange(min=1, max=0).args == (1, 0)
    assert CallerDataTooLarge(length=20000).args == (20000, MAX_CALLER_DATA_SIZE)
    assert InvalidCount(count=0).args == (0,)
