from __future__ import annotations

import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from probemon.checks.results import ProbeResult


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:
        self.server.client_ports.append(self.client_address[1])
        if self.path.startswith("/drip"):
            self._drip()
            return
        if self.path.startswith("/slow"):
            time.sleep(2)
            code = 200
        elif self.path.startswith("/delay"):
            time.sleep(0.6)
            code = 200
        elif self.path.startswith("/error"):
            code = 500
        elif self.path.startswith("/missing"):
            code = 404
        elif self.path.startswith("/redirect"):
            self.send_response(302)
            self.send_header("Location", "/ok")
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        else:
            code = 200
        body = b"ok"
        self.send_response(code)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _drip(self) -> None:
        # one header byte every 0.1s; each byte resets the client's read timeout
        self.close_connection = True
        try:
            self.wfile.write(b"HTTP/1.1 200 OK\r\nX-Pad: ")
            for _ in range(40):
                self.wfile.write(b"a")
                self.wfile.flush()
                time.sleep(0.1)
            self.wfile.write(b"\r\nContent-Length: 0\r\n\r\n")
        except OSError:
            pass

    def log_message(self, format, *args) -> None:
        pass


class LocalServer:
    def __init__(self) -> None:
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
        self.httpd.daemon_threads = True
        self.httpd.client_ports = []
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    def url(self, path: str = "/ok") -> str:
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}{path}"

    def __enter__(self) -> LocalServer:
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self.httpd.shutdown()
        self.httpd.server_close()


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class FakeProber:
    """Answers instantly (or after ``delay``) and records every call."""

    def __init__(self, delay: float = 0.0, status_code: int = 200) -> None:
        self.delay = delay
        self.status_code = status_code
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def check(self, url, name, cancel=None) -> ProbeResult:
        with self._lock:
            self.calls.append(name)
        if self.delay:
            if cancel is not None and cancel.wait(self.delay):
                return ProbeResult.failure(name, url, "cancelled")
            if cancel is None:
                time.sleep(self.delay)
        return ProbeResult.success(name, url, self.status_code, self.delay)
