# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level Petze facade: one watcher per service, one shared result queue."""

from __future__ import annotations

import queue
from collections.abc import Iterable, Iterator

from .config import ProbeSettings, load_probe_settings
from .models import ProbeResult, Service
from .watch import SessionRunner, Watcher, watch


class Petze:
    """
    Convenience wrapper that runs watchers for many services.

    Every watcher owns its own client and fault classifier; only the result
    queue is shared. Results arrive in per-service chronological order.
    """

    def __init__(
        self,
        services: Iterable[Service] = (),
        *,
        settings: ProbeSettings | None = None,
        session_runner: SessionRunner | None = None,
        results_queue: queue.Queue[ProbeResult] | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.session_runner = session_runner
        if results_queue is None:
            results_queue = queue.Queue(maxsize=self.settings.sink_size)
        self.results_queue: queue.Queue[ProbeResult] = results_queue
        self._services = {service.id: service for service in services}
        self._watchers: dict[str, Watcher] = {}

    @property
    def watchers(self) -> dict[str, Watcher]:
        return dict(self._watchers)

    def start(self) -> Petze:
        for service in self._services.values():
            if service.id not in self._watchers:
                self._watchers[service.id] = self._watch(service)
        return self

    def add(self, service: Service) -> Watcher:
        """Watch ``service``, replacing a running watcher with the same id."""
        self.remove(service.id)
        self._services[service.id] = service
        watcher = self._watch(service)
        self._watchers[service.id] = watcher
        return watcher

    def remove(self, service_id: str) -> bool:
        self._services.pop(service_id, None)
        watcher = self._watchers.pop(service_id, None)
        if watcher is None:
            return False
        watcher.stop()
        return True

    def results(self, *, timeout: float | None = None) -> Iterator[ProbeResult]:
        """Yield published results; ends once nothing arrives within ``timeout``."""
        while True:
            try:
                yield self.results_queue.get(timeout=timeout)
            except queue.Empty:
                return

    def stop(self, wait: float | None = None) -> None:
        watchers = list(self._watchers.values())
        self._watchers.clear()
        for watcher in watchers:
            watcher.stop()
        if wait is not None:
            for watcher in watchers:
                watcher.join(wait)

    def _watch(self, service: Service) -> Watcher:
        return watch(service, self.results_queue, settings=self.settings, session_runner=self.session_runner)

    def __enter__(self) -> Petze:
        return self.start()

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.stop()
