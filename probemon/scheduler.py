from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import Protocol

from probemon.checks.results import ProbeResult
from probemon.models import ConfigError, Target
from probemon.stream import ResultStream

logger = logging.getLogger(__name__)


class Prober(Protocol):
    def check(
        self, url: str, name: str, cancel: threading.Event | None = None
    ) -> ProbeResult: ...


class Ticker:
    """Fires on ``start + k * interval``.

    A tick that is already due when ``wait`` is called fires at once; ticks
    missed while the caller was busy are dropped rather than replayed.
    """

    def __init__(self, interval_s: float, clock=time.monotonic) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.interval_s = interval_s
        self._clock = clock
        self._next = clock() + interval_s

    def wait(self, cancel: threading.Event) -> bool:
        """Block until the next tick. Returns False if ``cancel`` fired first."""
        delay = self._next - self._clock()
        if delay > 0 and cancel.wait(delay):
            return False
        if cancel.is_set():
            return False
        now = self._clock()
        self._next += self.interval_s
        while self._next <= now:
            self._next += self.interval_s
        return True


def validate_targets(targets: Iterable[Target]) -> list[Target]:
    targets = list(targets)
    seen: set[str] = set()
    for t in targets:
        if not t.name:
            raise ConfigError("target name must not be empty")
        if t.name in seen:
            raise ConfigError(f"Duplicate target name: {t.name}")
        seen.add(t.name)
        if not t.url or not t.url.strip():
            raise ConfigError(f"target {t.name}: url must not be empty")
        if t.interval_s is None or t.interval_s <= 0:
            raise ConfigError(
                f"target {t.name}: interval must be positive, got {t.interval_s}"
            )
    return targets


def _check_safely(prober: Prober, target: Target, cancel: threading.Event) -> ProbeResult:
    try:
        return prober.check(target.url, target.name, cancel)
    except Exception as e:
        logger.exception("Probe error: %s", target.name)
        return ProbeResult.failure(target.name, target.url, f"{type(e).__name__}: {e}")


def _probe_loop(
    cancel: threading.Event,
    prober: Prober,
    target: Target,
    results: ResultStream,
) -> None:
    ticker = Ticker(target.interval_s)
    logger.debug("Probe loop started: %s every %gs", target.name, target.interval_s)
    try:
        while ticker.wait(cancel):
            result = _check_safely(prober, target, cancel)
            # Anything still in flight at shutdown is dropped, not forwarded.
            if cancel.is_set():
                break
            if not results.send(result, cancel):
                break
    finally:
        logger.debug("Probe loop stopped: %s", target.name)


def _close_when_done(workers: list[threading.Thread], results: ResultStream) -> None:
    for w in workers:
        w.join()
    results.close()
    logger.info("All probe loops stopped; result stream closed")


def start(
    cancel: threading.Event,
    prober: Prober,
    targets: Iterable[Target],
    results: ResultStream,
) -> threading.Thread:
    """Launch one loop per target and return the supervisor thread.

    Raises ``ConfigError`` before anything starts if a target is invalid.
    The supervisor closes ``results`` after the last loop has exited; join it
    or iterate the stream to observe shutdown.
    """
    targets = validate_targets(targets)

    workers = [
        threading.Thread(
            target=_probe_loop,
            args=(cancel, prober, t, results),
            name=f"probe-{t.name}",
            daemon=True,
        )
        for t in targets
    ]
    for w in workers:
        w.start()

    supervisor = threading.Thread(
        target=_close_when_done,
        args=(workers, results),
        name="probe-supervisor",
        daemon=True,
    )
    supervisor.start()
    logger.info("Probe scheduler started: %d targets", len(workers))
    return supervisor


class Scheduler:
    """Owns a cancellation event and the loops started under it."""

    def __init__(
        self,
        prober: Prober,
        targets: Iterable[Target],
        results: ResultStream,
        cancel: threading.Event | None = None,
    ) -> None:
        self.prober = prober
        self.targets = validate_targets(targets)
        self.results = results
        self.cancel = cancel or threading.Event()
        self._supervisor: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._supervisor is not None and self._supervisor.is_alive()

    def start(self) -> None:
        if self._supervisor is not None:
            return
        self._supervisor = start(self.cancel, self.prober, self.targets, self.results)

    def stop(self) -> None:
        self.cancel.set()

    def join(self, timeout: float | None = None) -> bool:
        if self._supervisor is None:
            return True
        self._supervisor.join(timeout)
        return not self._supervisor.is_alive()
