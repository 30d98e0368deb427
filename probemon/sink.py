from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from probemon.checks.results import ProbeResult
from probemon.formatting import format_result
from probemon.stream import ResultStream

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TargetState:
    name: str
    url: str
    ok: bool | None = None
    last_run: str | None = None
    last_ok: str | None = None
    checks: int = 0
    failures: int = 0
    status_code: int | None = None
    duration_s: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MetricsSink:
    """Turns probe results into prometheus metrics, log lines and a
    latest-result-per-target snapshot.

    Whether a target counts as down is decided here, not by the prober:
    only failure results increment ``probe_failed_total``.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        registry = REGISTRY if registry is None else registry
        self.probe_total = Counter(
            "probe_requests_total",
            "Total number of probe requests",
            ["target"],
            registry=registry,
        )
        self.probe_failures = Counter(
            "probe_failed_total",
            "Total number of probe checks that failed",
            ["target"],
            registry=registry,
        )
        self.probe_latency = Histogram(
            "probe_latency_seconds",
            "Latency of successful probe checks in seconds",
            ["target"],
            registry=registry,
        )
        self._states: dict[str, TargetState] = {}
        self._lock = threading.Lock()

    def record(self, result: ProbeResult) -> None:
        self.probe_total.labels(target=result.target).inc()
        if result.ok:
            self.probe_latency.labels(target=result.target).observe(result.duration_s)
            logger.info(format_result(result))
        else:
            self.probe_failures.labels(target=result.target).inc()
            logger.warning(format_result(result))

        with self._lock:
            st = self._states.get(result.target)
            if st is None:
                st = self._states[result.target] = TargetState(
                    name=result.target, url=result.url
                )
            st.ok = result.ok
            st.last_run = now_iso()
            st.checks += 1
            st.status_code = result.status_code
            st.duration_s = result.duration_s
            st.error = result.error
            if result.ok:
                st.last_ok = st.last_run
            else:
                st.failures += 1

    def consume(self, results: ResultStream) -> int:
        """Record every result until the stream closes. Returns the count."""
        n = 0
        for result in results:
            try:
                self.record(result)
            except Exception:
                # keep draining
                logger.exception("Failed to record result for %s", result.target)
            n += 1
        logger.info("Result stream closed after %d results", n)
        return n

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {k: v.to_dict() for k, v in self._states.items()}
