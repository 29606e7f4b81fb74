# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Long-lived per-service probe loop."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Protocol

from ..config import ProbeSettings
from ..errors import ErrorType
from ..log import service_logger
from ..models import ProbeError, ProbeResult, Service
from .probe import ProbeExecutor
from .session import SessionRunner


class ResultSink(Protocol):
    """Anything with a blocking ``put``; ``queue.Queue`` is the usual choice."""

    def put(self, item: ProbeResult) -> None: ...


class WatcherState(str, Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class Watcher:
    """
    Probes one service on its interval and publishes every Result to ``sink``.

    ``stop()`` is asynchronous: the probe in flight completes first, and a
    watcher cannot be started again once stopped. Publishing blocks while the
    sink is full, which delays (never skips) the following probes.
    """

    def __init__(
        self,
        service: Service,
        sink: ResultSink,
        *,
        executor: ProbeExecutor | None = None,
        settings: ProbeSettings | None = None,
        session_runner: SessionRunner | None = None,
    ):
        self.service = service
        self._sink = sink
        self._executor = executor
        self._settings = settings
        self._session_runner = session_runner
        self._stop_requested = threading.Event()
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._log = service_logger(__name__, service.id)

    @property
    def state(self) -> WatcherState:
        if self._thread is None:
            return WatcherState.STOPPED if self._stop_requested.is_set() else WatcherState.CREATED
        if self._stopped.is_set():
            return WatcherState.STOPPED
        if self._stop_requested.is_set():
            return WatcherState.STOPPING
        return WatcherState.RUNNING

    def start(self) -> Watcher:
        with self._lock:
            if self._thread is not None or self._stop_requested.is_set():
                raise RuntimeError(f"watcher for {self.service.id!r} cannot be restarted; create a new one")
            self._thread = threading.Thread(target=self._loop, name=f"petze-watch-{self.service.id}", daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        """Request termination; returns immediately."""
        self._stop_requested.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop to end; True once it has."""
        if self._thread is None:
            return self._stop_requested.is_set()
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _loop(self) -> None:
        executor: ProbeExecutor | None = None
        try:
            executor = self._executor or ProbeExecutor(settings=self._settings, session_runner=self._session_runner)
            self._log.info("watching %s every %.3gs", self.service.endpoint, self.service.interval)
            while not self._stop_requested.is_set():
                result = self._probe(executor)
                if self._stop_requested.is_set():
                    break
                self._sink.put(result)
                self._stop_requested.wait(self.service.interval)
        finally:
            if executor is not None and self._executor is None:
                executor.close()
            self._stopped.set()
            self._log.info("stopped watching")

    def _probe(self, executor: ProbeExecutor) -> ProbeResult:
        try:
            return executor.run(self.service)
        except Exception as exc:  # noqa: BLE001
            self._log.exception("probe crashed")
            return ProbeResult(id=self.service.id, errors=(ProbeError.from_exception(exc, ErrorType.UNKNOWN_ERROR),))


def watch(
    service: Service,
    sink: ResultSink,
    *,
    executor: ProbeExecutor | None = None,
    settings: ProbeSettings | None = None,
    session_runner: SessionRunner | None = None,
) -> Watcher:
    """Create a watcher for ``service`` and start it."""
    return Watcher(service, sink, executor=executor, settings=settings, session_runner=session_runner).start()


__all__ = ["ResultSink", "Watcher", "WatcherState", "watch"]
