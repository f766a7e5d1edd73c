"""
Engine configuration.

Typed configuration for the randomness engine and the tooling around it:
- Call limits (payload size, batch size, weak-payload threshold)
- The hash function the engine mixes with
- Where the CLI persists engine state

Provides:
- A dataclass-based config with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import yaml

from .constants import (
    HASH_KECCAK256,
    MAX_CALLER_DATA_SIZE,
    MAX_COUNT,
    SUPPORTED_HASH_FNS,
    WEAK_CALLER_DATA_THRESHOLD,
)
from .events import MAX_LIST_LEN


@dataclass
class EngineConfig:
    """
    Limits:
      - max_caller_data_size: payloads longer than this are rejected
      - max_count: largest batch a single call may request
      - weak_caller_data_threshold: payloads shorter than this emit WeakCallerData

    Mixing:
      - hash_fn: "keccak256" (default) or "sha3_256"

    Tooling:
      - state_path: SQLite file the CLI keeps engine state in (None = in-memory)
    """

    max_caller_data_size: int = MAX_CALLER_DATA_SIZE
    max_count: int = MAX_COUNT
    weak_caller_data_threshold: int = WEAK_CALLER_DATA_THRESHOLD
    hash_fn: str = HASH_KECCAK256
    state_path: Optional[str] = None

    def validate(self) -> None:
        if self.max_caller_data_size <= 0:
            raise ValueError("max_caller_data_size must be > 0")
        if not (1 <= self.max_count <= MAX_LIST_LEN):
            raise ValueError(f"max_count must be between 1 and {MAX_LIST_LEN}")
        if self.weak_caller_data_threshold < 0:
            raise ValueError("weak_caller_data_threshold must be >= 0")
        if self.weak_caller_data_threshold > self.max_caller_data_size:
            raise ValueError("weak_caller_data_threshold must not exceed max_caller_data_size")
        if self.hash_fn not in SUPPORTED_HASH_FNS:
            raise ValueError(
                f"Unsupported hash_fn: {self.hash_fn!r} (expected one of {sorted(SUPPORTED_HASH_FNS)})"
            )
        if self.state_path is not None and not self.state_path.strip():
            raise ValueError("state_path must be non-empty when set")

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "INSTARAND_") -> "EngineConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys:
          - INSTARAND_MAX_CALLER_DATA_SIZE=10240
          - INSTARAND_MAX_COUNT=100
          - INSTARAND_WEAK_CALLER_DATA_THRESHOLD=32
          - INSTARAND_HASH_FN=keccak256
          - INSTARAND_STATE_PATH=./data/instarand/state.db
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                return cast(raw)
            except Exception as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        cfg = EngineConfig(
            max_caller_data_size=_get("MAX_CALLER_DATA_SIZE", int, MAX_CALLER_DATA_SIZE),
            max_count=_get("MAX_COUNT", int, MAX_COUNT),
            weak_caller_data_threshold=_get(
                "WEAK_CALLER_DATA_THRESHOLD", int, WEAK_CALLER_DATA_THRESHOLD
            ),
            hash_fn=_get("HASH_FN", str, HASH_KECCAK256),
            state_path=_get("STATE_PATH", str, None),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "EngineConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        fields. Example (YAML):

            max_caller_data_size: 10240
            max_count: 100
            hash_fn: keccak256
            state_path: ./data/instarand/state.db
        """
        data = load_document(path)
        known = set(EngineConfig.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys in {path!r}: {', '.join(unknown)}")
        cfg = EngineConfig(**data)
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def load_document(path: str) -> Dict[str, Any]:
    """Read a JSON or YAML mapping from `path`."""
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    # First try JSON
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse {path!r} as JSON or YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path!r} must contain a mapping at the top level")
    return data


DEFAULT: EngineConfig = EngineConfig()


__all__ = [
    "EngineConfig",
    "DEFAULT",
    "load_document",
]
