"""
instarand.cli
-------------

Local CLI around the randomness engine. State lives in a SQLite file so
successive invocations continue the same nonce/pool sequence.

Commands:
  - init   : Seed a new engine state (no-op if the state file already holds one).
  - draw   : Single draw.
  - range  : Ranged draw in [MIN, MAX].
  - many   : Batch draw of COUNT values.
  - nonce  : Print the current nonce.

The execution context comes from --context (JSON/YAML file with the
ExecutionContext fields) or from individual options; --timestamp defaults to
the current time.

Environment:
  INSTARAND_STATE_PATH and the other INSTARAND_* keys of EngineConfig.from_env.

Example:
  instarand init --deployer 0x00000000000000000000000000000000000000aa
  instarand draw --payload "dice roll #1"
  instarand range 1 6 --payload-hex 0xdeadbeef
  instarand many 10 --context ./block.yaml
"""

from __future__ import annotations

import json
import logging
import sqlite3
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from ..config import EngineConfig, load_document
from ..context import ContextError, ExecutionContext, StaticContextProvider, to_bytes
from ..engine import RandomnessEngine
from ..errors import RngError
from ..store.sqlite import SQLiteStateStore
from ..types import DrawResult

__all__ = ["app", "main"]

_DEFAULT_STATE_PATH = "./instarand-state.db"
_DEFAULT_CALLER = "0x" + "00" * 19 + "01"

app = typer.Typer(
    name="instarand",
    help="Single-call randomness engine (local state, JSON output).",
    no_args_is_help=True,
    add_completion=False,
)


@dataclass
class _Options:
    config: EngineConfig
    context_path: Optional[str]
    overrides: Dict[str, Any]


# -----------------------
# Helpers
# -----------------------

def _fail(payload: Dict[str, Any], code: int = 2) -> None:
    typer.echo(json.dumps(payload, sort_keys=True), err=True)
    raise typer.Exit(code=code)


def _emit(doc: Dict[str, Any]) -> None:
    typer.echo(json.dumps(doc, indent=2, sort_keys=True))


def _build_context(opts: _Options) -> ExecutionContext:
    base: Dict[str, Any] = {}
    if opts.context_path:
        base = load_document(opts.context_path)
    merged = dict(base)
    merged.update({k: v for k, v in opts.overrides.items() if v is not None})
    merged.setdefault("timestamp", int(time.time()))
    merged.setdefault("block_height", 0)
    merged.setdefault("chain_id", 1)
    merged.setdefault("prev_block_hash", "0x" + "00" * 32)
    merged.setdefault("caller", _DEFAULT_CALLER)
    return ExecutionContext.from_dict(merged)


def _payload(text: Optional[str], hex_: Optional[str]) -> bytes:
    if text is not None and hex_ is not None:
        raise typer.BadParameter("use either --payload or --payload-hex, not both")
    if hex_ is not None:
        try:
            return to_bytes(hex_)
        except ContextError as e:
            raise typer.BadParameter(str(e)) from e
    return (text or "").encode("utf-8")


def _open_engine(ctx: typer.Context, *, deployer: Optional[str] = None) -> RandomnessEngine:
    opts: _Options = ctx.obj
    path = opts.config.state_path or _DEFAULT_STATE_PATH
    try:
        store = SQLiteStateStore(path)
    except (sqlite3.Error, OSError) as e:
        _fail({"code": "bad_state", "message": f"cannot open state file {path}: {e}"})
    ctx.call_on_close(store.close)
    try:
        saved = store.load()
    except (sqlite3.Error, ValueError) as e:
        _fail({"code": "bad_state", "message": f"cannot read engine state from {path}: {e}"})
    if deployer is None and saved is None:
        _fail({"code": "not_initialized", "message": f"no engine state in {path}; run `instarand init`"})
    try:
        provider = StaticContextProvider(_build_context(opts))
        return RandomnessEngine(provider, deployer=deployer or b"", config=opts.config, store=store)
    except (ContextError, ValueError) as e:
        _fail({"code": "bad_context", "message": str(e)})
    raise AssertionError("unreachable")  # pragma: no cover


def _run(fn, *args: Any) -> DrawResult:
    try:
        return fn(*args)
    except RngError as e:
        _fail(e.to_dict())
    except (TypeError, ValueError) as e:
        _fail({"code": "bad_argument", "message": str(e)})
    raise AssertionError("unreachable")  # pragma: no cover


# -----------------------
# Commands
# -----------------------

@app.callback()
def _main(
    ctx: typer.Context,
    state: Optional[str] = typer.Option(None, "--state", help="SQLite state file."),
    config_path: Optional[str] = typer.Option(None, "--config", help="EngineConfig JSON/YAML file."),
    context_path: Optional[str] = typer.Option(None, "--context", help="ExecutionContext JSON/YAML file."),
    caller: Optional[str] = typer.Option(None, "--caller", help="Caller address (hex, 20 bytes)."),
    origin: Optional[str] = typer.Option(None, "--origin", help="Tx origin address (defaults to caller)."),
    timestamp: Optional[int] = typer.Option(None, "--timestamp", help="Block timestamp (default: now)."),
    height: Optional[int] = typer.Option(None, "--height", help="Block height."),
    chain_id: Optional[int] = typer.Option(None, "--chain-id", help="Chain id."),
    block_random: Optional[int] = typer.Option(None, "--block-random", help="Per-block random seed."),
    prev_hash: Optional[str] = typer.Option(None, "--prev-hash", help="Previous block hash (hex, 32 bytes)."),
    gas_price: Optional[int] = typer.Option(None, "--gas-price", help="Fee price."),
    balance: Optional[int] = typer.Option(None, "--balance", help="Engine balance."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        cfg = EngineConfig.from_file(config_path) if config_path else EngineConfig.from_env()
    except ValueError as e:
        _fail({"code": "bad_config", "message": str(e)})
    if state is not None:
        cfg.state_path = state
    ctx.obj = _Options(
        config=cfg,
        context_path=context_path,
        overrides={
            "caller": caller,
            "origin": origin,
            "timestamp": timestamp,
            "block_height": height,
            "chain_id": chain_id,
            "block_random": block_random,
            "prev_block_hash": prev_hash,
            "gas_price": gas_price,
            "balance": balance,
        },
    )


@app.command("init")
def init_cmd(
    ctx: typer.Context,
    deployer: str = typer.Option(..., "--deployer", help="Deployer address (hex, 20 bytes)."),
) -> None:
    """Seed the engine state (resumes silently if already seeded)."""
    engine = _open_engine(ctx, deployer=deployer)
    _emit({"state": engine.state.to_dict(), "hashFn": engine.config.hash_fn})


@app.command("draw")
def draw_cmd(
    ctx: typer.Context,
    payload: Optional[str] = typer.Option(None, "--payload", help="Caller entropy (UTF-8 text)."),
    payload_hex: Optional[str] = typer.Option(None, "--payload-hex", help="Caller entropy (hex)."),
) -> None:
    """Single draw."""
    engine = _open_engine(ctx)
    res = _run(engine.draw, _payload(payload, payload_hex))
    _emit({"value": res.value, **res.to_dict(), "nonce": engine.current_nonce()})


@app.command("range")
def range_cmd(
    ctx: typer.Context,
    min_value: int = typer.Argument(..., metavar="MIN"),
    max_value: int = typer.Argument(..., metavar="MAX"),
    payload: Optional[str] = typer.Option(None, "--payload", help="Caller entropy (UTF-8 text)."),
    payload_hex: Optional[str] = typer.Option(None, "--payload-hex", help="Caller entropy (hex)."),
) -> None:
    """Ranged draw in [MIN, MAX]."""
    engine = _open_engine(ctx)
    res = _run(engine.draw_in_range, _payload(payload, payload_hex), min_value, max_value)
    _emit({"value": res.value, **res.to_dict(), "nonce": engine.current_nonce()})


@app.command("many")
def many_cmd(
    ctx: typer.Context,
    count: int = typer.Argument(..., metavar="COUNT"),
    payload: Optional[str] = typer.Option(None, "--payload", help="Caller entropy (UTF-8 text)."),
    payload_hex: Optional[str] = typer.Option(None, "--payload-hex", help="Caller entropy (hex)."),
) -> None:
    """Batch draw of COUNT values."""
    engine = _open_engine(ctx)
    res = _run(engine.draw_many, _payload(payload, payload_hex), count)
    _emit({**res.to_dict(), "nonce": engine.current_nonce()})


@app.command("nonce")
def nonce_cmd(ctx: typer.Context) -> None:
    """Print the current nonce."""
    engine = _open_engine(ctx)
    _emit({"nonce": engine.get_current_nonce()})


def main(argv: Optional[list[str]] = None) -> None:
    app(args=argv if argv is not None else sys.argv[1:], prog_name="instarand")
