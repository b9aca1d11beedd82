from __future__ import annotations

import os
import threading
import time
from typing import Dict


_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("GEMMARKET_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _counters[n] = int(_counters.get(n, 0)) + int(value)


def set_gauge(name: str, value: int) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _gauges[n] = int(value)


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    now_ms = int(time.time() * 1000)
    with _lock:
        return {
            "ts_ms": now_ms,
            "started_ms": int(_started_ms),
            "uptime_ms": now_ms - int(_started_ms),
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "gemmarket_") -> str:
    """Prometheus exposition text; integer counters and gauges only."""
    pre = str(prefix or "").strip() or "gemmarket_"
    snap = snapshot()
    lines = [f"{pre}uptime_ms {int(snap['uptime_ms'])}"]

    for name, v in sorted(snap["counters"].items()):
        lines.append(f"{pre}{name} {int(v)}")
    for name, v in sorted(snap["gauges"].items()):
        lines.append(f"{pre}{name} {int(v)}")

    return "\n".join(lines) + "\n"
