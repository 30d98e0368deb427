from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator

from probemon.checks.results import ProbeResult

# How often a blocked sender re-reads its cancellation signal.
POLL_S = 0.05


class StreamClosedError(RuntimeError):
    pass


class ResultStream:
    """Closable many-producer handoff for probe results.

    ``capacity`` bounds how many results may sit unconsumed; senders block
    while it is reached, so a slow consumer throttles every producer. The
    stream must only be closed once no producer can send anymore; sending
    after close raises ``StreamClosedError``. Consumers drain any remaining
    results after close and then stop.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[ProbeResult] = deque()
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, result: ProbeResult, cancel: threading.Event | None = None) -> bool:
        """Hand ``result`` to the consumer side.

        Returns False without enqueuing when ``cancel`` is set while waiting
        for room.
        """
        with self._cond:
            while len(self._items) >= self._capacity and not self._closed:
                if cancel is not None and cancel.is_set():
                    return False
                self._cond.wait(POLL_S)
            if self._closed:
                raise StreamClosedError("send on closed result stream")
            self._items.append(result)
            self._cond.notify_all()
            return True

    def receive(self, timeout: float | None = None) -> ProbeResult | None:
        """Next result, or None if ``timeout`` elapsed first.

        Raises ``StreamClosedError`` once the stream is closed and drained.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            )
            if not ready:
                return None
            if self._items:
                item = self._items.popleft()
                self._cond.notify_all()
                return item
            raise StreamClosedError("result stream closed")

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def wait_closed(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._closed, timeout=timeout)

    def __iter__(self) -> Iterator[ProbeResult]:
        while True:
            try:
                item = self.receive()
            except StreamClosedError:
                return
            if item is not None:
                yield item
