"""
SQLite-backed state store.

Features
--------
- One row per engine, keyed by a caller-chosen name (default b"engine").
- Writes are single `INSERT OR REPLACE` statements, so a save either lands
  completely or not at all.
- Pragmas tuned for small local workloads (WAL, synchronous=NORMAL).
- Small, dependency-free implementation on top of stdlib `sqlite3`.
"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Optional

from ..types import EntropyState


# --- Helpers -----------------------------------------------------------------

def _ensure_dir(path: str) -> None:
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")


def _init_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS entropy_state (
            name  BLOB PRIMARY KEY,
            value BLOB NOT NULL
        );
        """
    )


# --- Implementation -----------------------------------------------------------

@dataclass
class SQLiteStateStore:
    """
    SQLite-backed implementation of the StateStore protocol.

    Parameters
    ----------
    path : str
        File path to the SQLite database. Directories will be created if needed.
    name : bytes
        Row key, so several engines can share one database file.

    Example
    -------
    >>> store = SQLiteStateStore("/tmp/instarand.db")
    >>> store.save(EntropyState(nonce=0, pool=1))
    >>> store.load()
    EntropyState(nonce=0, pool=1)
    >>> store.close()
    """

    path: str
    name: bytes = b"engine"

    def __post_init__(self) -> None:
        _ensure_dir(self.path)
        # isolation_level=None -> autocommit; each statement is its own transaction
        self._conn = sqlite3.connect(self.path, isolation_level=None, timeout=30.0)
        _apply_pragmas(self._conn)
        _init_schema(self._conn)

    # --- Context manager support --------------------------------------------

    def __enter__(self) -> "SQLiteStateStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- StateStore API -------------------------------------------------------

    def load(self) -> Optional[EntropyState]:
        cur = self._conn.execute("SELECT value FROM entropy_state WHERE name = ?", (self.name,))
        row = cur.fetchone()
        return EntropyState.from_bytes(bytes(row[0])) if row else None

    def save(self, state: EntropyState) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO entropy_state(name, value) VALUES(?, ?)",
            (self.name, state.to_bytes()),
        )

    def close(self) -> None:
        self._conn.close()


__all__ = ["SQLiteStateStore"]
