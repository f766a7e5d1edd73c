"""
Prometheus metrics for the randomness engine.

Instruments:
  • draws_total{kind}        : successful calls per entry point (single/range/batch)
  • values_total             : values produced across all calls
  • rejected_total{reason}   : calls rejected by input validation
  • weak_caller_data_total   : calls flagged with a WeakCallerData event
  • batch_size               : distribution of requested batch sizes

Label vocabularies are fixed and small; unknown labels fold into "other".

Usage
-----
    from instarand.metrics import METRICS

    METRICS.record_draw("single", produced=1)
    METRICS.record_rejected("invalid_count")

Tests and embedders that need isolation construct their own `Metrics` with a
fresh `CollectorRegistry`.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram

_DRAW_KINDS = ("single", "range", "batch")

_REJECT_REASONS = (
    "invalid_range",
    "caller_data_too_large",
    "invalid_count",
)

# Batch sizes run 1..MAX_COUNT; buckets resolve the small end finely.
_BATCH_SIZE_BUCKETS = (1.0, 2.0, 5.0, 10.0, 25.0, 50.0, 75.0, 100.0)


class Metrics:
    """
    Container for all engine Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem (inserted between namespace and name).
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "instarand",
        subsystem: str = "engine",
        registry=REGISTRY,
        batch_buckets: Iterable[float] = _BATCH_SIZE_BUCKETS,
    ) -> None:
        self.draws_total = Counter(
            "draws_total",
            "Successful engine calls, labeled by entry point.",
            labelnames=("kind",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.values_total = Counter(
            "values_total",
            "Random values produced across all calls.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.rejected_total = Counter(
            "rejected_total",
            "Engine calls rejected by input validation, labeled by reason.",
            labelnames=("reason",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.weak_caller_data_total = Counter(
            "weak_caller_data_total",
            "Calls whose payload was shorter than the weak-data threshold.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.batch_size = Histogram(
            "batch_size",
            "Number of values requested per successful batch call.",
            buckets=tuple(batch_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_draw(self, kind: str, *, produced: int) -> None:
        if kind not in _DRAW_KINDS:
            kind = "other"
        self.draws_total.labels(kind=kind).inc()
        self.values_total.inc(produced)
        if kind == "batch":
            self.batch_size.observe(float(produced))

    def record_rejected(self, reason: str) -> None:
        if reason not in _REJECT_REASONS:
            reason = "other"
        self.rejected_total.labels(reason=reason).inc()

    def record_weak_caller_data(self) -> None:
        self.weak_caller_data_total.inc()


# Singleton used by default
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_DRAW_KINDS",
    "_REJECT_REASONS",
]
