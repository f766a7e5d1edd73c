"""
instarand.tests
---------------
Test package for the randomness engine.

Notes:
- Contexts are fixed, hand-written snapshots; nothing reads a live chain.
- Each test builds its own Prometheus registry so counters start at zero.
"""

from __future__ import annotations

__all__: tuple[str, ...] = ()
