"""
tokenguard.metrics — Prometheus counters for guarded token calls.

Centralized registry: consumers call `get_registry()` / `generate_latest_text()`
to expose metrics (e.g., from a sidecar HTTP handler or the CLI).

Exposed metrics (names are prefixed with `tokenguard_`):
  - calls_total{op,result}           : Counter — token calls by outcome
  - gate_decisions_total{decision}   : Counter — anti-bot gate evaluations, not committed transfers
  - events_total{name}               : Counter — committed events by name

Labels:
  - result   ∈ {ok, <error code>, error}
  - decision ∈ {disabled, exempt, passed, TransactionLimitExceeded, WalletBalanceLimitExceeded}
"""

from __future__ import annotations

from typing import Iterable, Optional

from prometheus_client import CollectorRegistry, Counter, generate_latest

_PREFIX = "tokenguard_"

_registry: Optional[CollectorRegistry] = None

# Metric singletons (bound during _build_metrics)
CALLS_TOTAL: Counter
GATE_DECISIONS_TOTAL: Counter
EVENTS_TOTAL: Counter


def set_registry(registry: CollectorRegistry) -> None:
    """
    Bind metrics to `registry` (e.g. a fresh one per test). Rebuilds the
    metric singletons on the new registry.
    """
    global _registry
    _registry = registry
    _build_metrics(registry)


def get_registry() -> CollectorRegistry:
    """Return the metrics registry, creating one on first use."""
    if _registry is None:
        set_registry(CollectorRegistry())
    assert _registry is not None
    return _registry


def _build_metrics(reg: CollectorRegistry) -> None:
    global CALLS_TOTAL, GATE_DECISIONS_TOTAL, EVENTS_TOTAL

    CALLS_TOTAL = Counter(
        _PREFIX + "calls_total",
        "Token calls executed (by operation and result).",
        labelnames=("op", "result"),
        registry=reg,
    )
    GATE_DECISIONS_TOTAL = Counter(
        _PREFIX + "gate_decisions_total",
        "Anti-bot gate evaluations by decision (counted before the balance check, so a passed call can still revert).",
        labelnames=("decision",),
        registry=reg,
    )
    EVENTS_TOTAL = Counter(
        _PREFIX + "events_total",
        "Committed events by name.",
        labelnames=("name",),
        registry=reg,
    )


# ------------------------------ helpers -------------------------------------


def observe_call(*, op: str, result: str) -> None:
    get_registry()
    CALLS_TOTAL.labels(op=op, result=result or "error").inc()


def observe_gate(decision: str) -> None:
    get_registry()
    GATE_DECISIONS_TOTAL.labels(decision=decision).inc()


def observe_events(names: Iterable[str]) -> None:
    get_registry()
    for name in names:
        EVENTS_TOTAL.labels(name=name).inc()


def sample(metric: str, /, **labels: str) -> float:
    """Current value of one labelled sample (0.0 if never observed)."""
    value = get_registry().get_sample_value(metric, labels)
    return 0.0 if value is None else value


def generate_latest_text() -> str:
    """Render the registry in the Prometheus text exposition format."""
    return generate_latest(get_registry()).decode("utf-8")


__all__ = [
    "set_registry",
    "get_registry",
    "observe_call",
    "observe_gate",
    "observe_events",
    "sample",
    "generate_latest_text",
]
