"""Process lifecycle for the portfolio server.

``GracefulServer`` runs the WSGI app on a threaded werkzeug server.  On
SIGTERM/SIGINT it stops accepting connections, waits for in-flight requests
and reports exit status 1 if they are still running after the shutdown
timeout.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

import requests
from werkzeug.serving import make_server

from .config import SHUTDOWN_TIMEOUT, Settings


logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


class InFlightTracker:
    """WSGI middleware counting requests that have not finished yet."""

    def __init__(self, app: Callable[..., Iterable[bytes]]) -> None:
        self.app = app
        self._count = 0
        self._condition = threading.Condition()

    @property
    def in_flight(self) -> int:
        with self._condition:
            return self._count

    def __call__(self, environ, start_response):
        with self._condition:
            self._count += 1
        try:
            iterable = self.app(environ, start_response)
            try:
                for chunk in iterable:
                    yield chunk
            finally:
                close = getattr(iterable, "close", None)
                if close is not None:
                    close()
        finally:
            with self._condition:
                self._count -= 1
                self._condition.notify_all()

    def wait_idle(self, timeout: float) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout=timeout)


class GracefulServer:
    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        settings: Settings,
        *,
        server_factory: Callable[..., Any] = make_server,
    ) -> None:
        self.settings = settings
        self.shutdown_timeout = settings.shutdown_timeout or SHUTDOWN_TIMEOUT
        self.tracker = InFlightTracker(app)
        self.server = server_factory(settings.host, settings.port, self.tracker, threaded=True)
        self._stopping = threading.Event()
        self.signal_name: Optional[str] = None

    @property
    def url(self) -> str:
        host = "localhost" if self.settings.host in ("0.0.0.0", "") else self.settings.host
        port = getattr(self.server, "server_port", self.settings.port)
        return f"http://{host}:{port}"

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def install_signal_handlers(self) -> Dict[int, Any]:
        """Route SIGTERM/SIGINT to :meth:`request_shutdown`.

        Returns the previous handlers; empty when not on the main thread,
        where handlers cannot be installed.
        """

        previous: Dict[int, Any] = {}
        if threading.current_thread() is not threading.main_thread():
            return previous
        for sig in (signal.SIGTERM, signal.SIGINT):
            previous[sig] = signal.signal(sig, self._on_signal)
        return previous

    def _on_signal(self, signum, _frame) -> None:
        self.request_shutdown(signal.Signals(signum).name)

    def request_shutdown(self, signal_name: str = "shutdown") -> None:
        if self._stopping.is_set():
            return
        self._stopping.set()
        self.signal_name = signal_name
        logger.info("%s received, closing server gracefully...", signal_name)
        # shutdown() blocks until serve_forever returns, so never call it
        # from the serving thread
        threading.Thread(target=self.server.shutdown, name="shutdown", daemon=True).start()

    def run(self) -> int:
        """Serve until a shutdown is requested; return the process exit code."""

        previous = self.install_signal_handlers()
        try:
            self.server.serve_forever()
        finally:
            self.server.server_close()
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        return self.drain()

    def drain(self) -> int:
        if self.tracker.wait_idle(self.shutdown_timeout):
            logger.info("Server closed")
            return 0
        logger.error("Forced shutdown after timeout")
        return 1


def install_fatal_handlers(exit_fn: Callable[[int], Any] = os._exit) -> None:
    """Make uncaught exceptions on any thread log and end the process."""

    def _excepthook(exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logger.critical("Uncaught exception: %s", exc, exc_info=(exc_type, exc, tb))
        exit_fn(1)

    def _thread_excepthook(args) -> None:
        if args.exc_type is SystemExit:
            return
        name = args.thread.name if args.thread is not None else "unknown"
        logger.critical(
            "Uncaught exception in thread %s: %s",
            name,
            args.exc_value,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        exit_fn(1)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook


@dataclass
class HealthProbe:
    url: str
    status_code: Optional[int] = None
    status: Optional[str] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None

    @property
    def healthy(self) -> bool:
        return self.status_code == 200 and self.status == "ok"


def probe_health(
    base_url: str,
    *,
    timeout: float = 5.0,
    session: Optional[requests.Session] = None,
) -> HealthProbe:
    url = base_url.rstrip("/") + HEALTH_PATH
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        return HealthProbe(url=url, error=str(exc))
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    return HealthProbe(
        url=url,
        status_code=response.status_code,
        status=data.get("status"),
        timestamp=data.get("timestamp"),
    )


def wait_for_server(
    base_url: str,
    *,
    timeout: float = 30.0,
    check_interval: float = 0.5,
    session: Optional[requests.Session] = None,
) -> HealthProbe:
    """Poll the health endpoint until it answers or ``timeout`` elapses."""

    start = time.monotonic()
    probe = probe_health(base_url, session=session)
    while not probe.healthy and time.monotonic() - start < timeout:
        time.sleep(check_interval)
        probe = probe_health(base_url, session=session)
    return probe
