from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram

# Named counters (custom)
_NAMED = Counter()

COMPILATIONS_TOTAL = PromCounter(
    "bt_bundle_compilations_total",
    "Total BT module compilations",
    ["outcome"],
)

COMPILE_DURATION_SECONDS = Histogram(
    "bt_bundle_compile_duration_seconds",
    "BT module compilation duration in seconds",
)


def reset_metrics() -> None:
    """
    Test helper: clears named counters to avoid cross-test leakage.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def record_compilation(outcome: str, duration_s: float) -> None:
    COMPILATIONS_TOTAL.labels(outcome=outcome).inc()
    COMPILE_DURATION_SECONDS.observe(duration_s)
    inc_named("compilations_total")
    inc_named(f"compilations_{outcome}")


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
