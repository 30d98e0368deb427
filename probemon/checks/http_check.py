from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout

import requests

from probemon.checks.results import ProbeResult

logger = logging.getLogger(__name__)

# How often a pending check re-reads the cancellation signal.
POLL_S = 0.05


class HttpProber:
    """Runs single HTTP GET checks over one shared ``requests.Session``.

    Each check is bound to a deadline of ``timeout_s`` and to an optional
    session-wide cancellation event. The request runs on its own short-lived
    thread, so a check that hangs past its deadline is abandoned without
    holding up checks of other targets.
    """

    def __init__(self, timeout_s: float, session: requests.Session | None = None) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def _send(self, prepared: requests.PreparedRequest, future: Future) -> None:
        try:
            resp = self._session.send(
                prepared,
                timeout=(self.timeout_s, self.timeout_s),
                allow_redirects=True,
            )
        except BaseException as e:
            future.set_exception(e)
            return
        # body is already read, so the connection goes back to the pool
        future.set_result(resp.status_code)

    def check(
        self, url: str, name: str, cancel: threading.Event | None = None
    ) -> ProbeResult:
        start = time.perf_counter()
        deadline = start + self.timeout_s

        if cancel is not None and cancel.is_set():
            return ProbeResult.failure(name, url, "cancelled before request was sent")

        try:
            prepared = self._session.prepare_request(requests.Request("GET", url))
        except (requests.RequestException, ValueError) as e:
            return ProbeResult.failure(name, url, f"invalid request: {e}")

        future: Future[int] = Future()
        threading.Thread(
            target=self._send,
            args=(prepared, future),
            name=f"http-check-{name}",
            daemon=True,
        ).start()

        while True:
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return ProbeResult.failure(
                    name, url, f"timed out after {self.timeout_s:g}s"
                )
            try:
                status_code = future.result(timeout=min(remaining, POLL_S))
            except FutureTimeout:
                if cancel is not None and cancel.is_set():
                    return ProbeResult.failure(name, url, "cancelled")
                continue
            except requests.RequestException as e:
                return ProbeResult.failure(name, url, f"{type(e).__name__}: {e}")
            except Exception as e:
                logger.debug("Unexpected probe error for %s", url, exc_info=True)
                return ProbeResult.failure(name, url, f"{type(e).__name__}: {e}")

            return ProbeResult.success(
                name, url, status_code=status_code, duration_s=time.perf_counter() - start
            )

    def close(self) -> None:
        self._session.close()
