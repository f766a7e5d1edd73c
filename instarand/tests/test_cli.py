from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from instarand.cli import app
from instarand.context import ExecutionContext, StaticContextProvider
from instarand.engine import RandomnessEngine
from instarand.tests.conftest import DEPLOYER

runner = CliRunner()

TS = "1700000000"


@pytest.fixture
def base_args(tmp_path):
    return ["--state", str(tmp_path / "state.db"), "--timestamp", TS, "--height", "12"]


def _invoke(args):
    return runner.invoke(app, args)


def _init(base_args):
    res = _invoke(base_args + ["init", "--deployer", "0x" + DEPLOYER.hex()])
    assert res.exit_code == 0, res.output
    return json.loads(res.stdout)


def test_init_prints_seeded_state(base_args):
    doc = _init(base_args)
    assert doc["state"]["nonce"] == 0
    assert doc["state"]["pool"].startswith("0x")
    assert doc["hashFn"] == "keccak256"


def test_init_twice_keeps_existing_state(base_args):
    first = _init(base_args)
    second = _invoke(base_args + ["init", "--deployer", "0x" + "ee" * 20])
    assert second.exit_code == 0, second.output
    assert json.loads(second.stdout) == first


def test_commands_require_init(base_args):
    res = _invoke(base_args + ["nonce"])
    assert res.exit_code == 2
    assert "not_initialized" in res.output


def test_draw_matches_library(base_args):
    _init(base_args)
    res = _invoke(base_args + ["draw", "--payload", "dice roll #1"])
    assert res.exit_code == 0, res.output
    doc = json.loads(res.stdout)

    ctx = ExecutionContext(
        timestamp=int(TS),
        block_random=0,
        block_height=12,
        prev_block_hash=b"\x00" * 32,
        chain_id=1,
        caller=b"\x00" * 19 + b"\x01",
        origin=b"\x00" * 19 + b"\x01",
    )
    from prometheus_client import CollectorRegistry

    from instarand.metrics import Metrics

    eng = RandomnessEngine(
        StaticContextProvider(ctx), deployer=DEPLOYER, metrics=Metrics(registry=CollectorRegistry())
    )
    expected = eng.draw(b"dice roll #1")

    assert doc["value"] == expected.value
    assert doc["values"] == [expected.value]
    assert doc["startNonce"] == 0
    assert doc["nonce"] == 1
    assert [ev["name"] for ev in doc["events"]] == ["WeakCallerData", "RandomGenerated"]


def test_state_carries_across_invocations(base_args):
    _init(base_args)
    values = []
    for _ in range(3):
        res = _invoke(base_args + ["draw", "--payload-hex", "0x" + "ab" * 32])
        assert res.exit_code == 0, res.output
        values.append(json.loads(res.stdout)["value"])

    assert len(set(values)) == 3
    res = _invoke(base_args + ["nonce"])
    assert json.loads(res.stdout) == {"nonce": 3}


def test_range_and_many(base_args):
    _init(base_args)

    res = _invoke(base_args + ["range", "1", "6", "--payload", "x" * 40])
    assert res.exit_code == 0, res.output
    assert 1 <= json.loads(res.stdout)["value"] <= 6

    res = _invoke(base_args + ["many", "5", "--payload", "x" * 40])
    assert res.exit_code == 0, res.output
    doc = json.loads(res.stdout)
    assert len(set(doc["values"])) == 5
    assert doc["startNonce"] == 1
    assert doc["nonce"] == 6
    assert doc["events"][0]["name"] == "BatchRandomGenerated"


@pytest.mark.parametrize(
    ("cmd", "code"),
    [
        (["range", "6", "1"], "invalid_range"),
        (["many", "0"], "invalid_count"),
        (["many", "101"], "invalid_count"),
    ],
)
def test_rejections_exit_2_and_keep_nonce(base_args, cmd, code):
    _init(base_args)
    res = _invoke(base_args + cmd)
    assert res.exit_code == 2
    assert code in res.output

    res = _invoke(base_args + ["nonce"])
    assert json.loads(res.stdout) == {"nonce": 0}


def test_oversized_payload_hex(base_args):
    _init(base_args)
    res = _invoke(base_args + ["draw", "--payload-hex", "00" * 10241])
    assert res.exit_code == 2
    assert "caller_data_too_large" in res.output


def test_bad_payload_hex(base_args):
    _init(base_args)
    res = _invoke(base_args + ["draw", "--payload-hex", "zz"])
    assert res.exit_code == 2


def test_context_file(base_args, tmp_path):
    _init(base_args)
    ctx_file = tmp_path / "block.yaml"
    ctx_file.write_text(
        "blockHeight: 99\nchainId: 5\ncaller: '0x" + "aa" * 20 + "'\n", encoding="utf-8"
    )
    res = _invoke(base_args + ["--context", str(ctx_file), "draw"])
    assert res.exit_code == 0, res.output
    ev = json.loads(res.stdout)["events"][-1]
    assert ev["args"][0] == {"k": "caller", "t": "b", "v": "0x" + "aa" * 20}


def test_bad_context_option(base_args):
    _init(base_args)
    res = _invoke(base_args + ["--caller", "0x1234", "draw"])
    assert res.exit_code == 2
    assert "bad_context" in res.output


def test_config_file_switches_hash(base_args, tmp_path):
    cfg = tmp_path / "engine.yaml"
    cfg.write_text("hash_fn: sha3_256\n", encoding="utf-8")
    res = _invoke(["--config", str(cfg)] + base_args + ["init", "--deployer", "0x" + "dd" * 20])
    assert res.exit_code == 0, res.output
    assert json.loads(res.stdout)["hashFn"] == "sha3_256"


def test_bad_config_file(base_args, tmp_path):
    cfg = tmp_path / "engine.yaml"
    cfg.write_text("max_count: 0\n", encoding="utf-8")
    res = _invoke(["--config", str(cfg)] + base_args + ["nonce"])
    assert res.exit_code == 2
    assert "bad_config" in res.output


def test_corrupt_state_file(tmp_path):
    path = tmp_path / "state.db"
    path.write_bytes(b"definitely not an sqlite database " * 64)
    res = _invoke(["--state", str(path), "--timestamp", TS, "nonce"])
    assert res.exit_code == 2
    assert "bad_state" in res.output


def test_unopenable_state_path(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    res = _invoke(["--state", str(blocker / "state.db"), "--timestamp", TS, "nonce"])
    assert res.exit_code == 2
    assert "bad_state" in res.output
