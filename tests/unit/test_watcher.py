# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
import queue
import threading
import time
from datetime import timedelta

import pytest

from petze.errors import ErrorType
from petze.models import ProbeResult, Service
from petze.watch import Watcher, WatcherState, watch
from petze.watch import watcher as watcher_module


class CountingExecutor:
    def __init__(self):
        self.calls = 0
        self.closed = False

    def run(self, service):
        self.calls += 1
        return ProbeResult(id=service.id, runtime=timedelta(seconds=self.calls))

    def close(self):
        self.closed = True


class BlockingExecutor(CountingExecutor):
    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def run(self, service):
        self.entered.set()
        self.release.wait(5)
        return super().run(service)


class CrashingExecutor(CountingExecutor):
    def run(self, service):
        self.calls += 1
        raise RuntimeError("executor exploded")


def make_service(interval=0.01):
    return Service(id="svc", endpoint="https://example.com/", interval=interval)


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_watcher_publishes_results_in_order():
    sink = queue.Queue()
    executor = CountingExecutor()
    watcher = Watcher(make_service(), sink, executor=executor).start()

    results = [sink.get(timeout=2) for _ in range(3)]
    watcher.stop()

    assert watcher.join(2)
    assert [r.id for r in results] == ["svc", "svc", "svc"]
    assert [r.runtime.total_seconds() for r in results] == [1.0, 2.0, 3.0]
    assert executor.closed is False


def test_watcher_state_transitions():
    watcher = Watcher(make_service(interval=60), queue.Queue(), executor=CountingExecutor())
    assert watcher.state == WatcherState.CREATED

    watcher.start()
    assert wait_until(lambda: watcher.state == WatcherState.RUNNING)

    watcher.stop()
    assert watcher.state in (WatcherState.STOPPING, WatcherState.STOPPED)
    assert watcher.join(2)
    assert watcher.state == WatcherState.STOPPED


def test_watcher_cannot_be_restarted():
    watcher = Watcher(make_service(interval=60), queue.Queue(), executor=CountingExecutor()).start()
    with pytest.raises(RuntimeError):
        watcher.start()
    watcher.stop()
    watcher.join(2)
    with pytest.raises(RuntimeError):
        watcher.start()

    never_started = Watcher(make_service(), queue.Queue(), executor=CountingExecutor())
    never_started.stop()
    assert never_started.state == WatcherState.STOPPED
    with pytest.raises(RuntimeError):
        never_started.start()
    assert never_started.join(0)


def test_stop_interrupts_interval_wait():
    sink = queue.Queue()
    watcher = Watcher(make_service(interval=60), sink, executor=CountingExecutor()).start()
    sink.get(timeout=2)

    started = time.monotonic()
    watcher.stop()

    assert watcher.join(2)
    assert time.monotonic() - started < 2
    assert sink.empty()


def test_result_in_flight_at_stop_is_dropped():
    sink = queue.Queue()
    executor = BlockingExecutor()
    watcher = Watcher(make_service(), sink, executor=executor).start()

    assert executor.entered.wait(2)
    watcher.stop()
    executor.release.set()

    assert watcher.join(2)
    assert executor.calls == 1
    assert sink.empty()


def test_crashing_executor_becomes_unknown_error():
    sink = queue.Queue()
    watcher = Watcher(make_service(interval=60), sink, executor=CrashingExecutor()).start()

    result = sink.get(timeout=2)
    watcher.stop()
    watcher.join(2)

    assert result.id == "svc"
    assert result.error_types == [ErrorType.UNKNOWN_ERROR]
    assert result.errors[0].error == "executor exploded"


def test_full_sink_delays_but_never_skips_probes():
    sink = queue.Queue(maxsize=1)
    executor = CountingExecutor()
    watcher = Watcher(make_service(interval=0.001), sink, executor=executor).start()

    assert wait_until(sink.full)
    time.sleep(0.05)
    # One result queued, one blocked in put.
    assert executor.calls <= 2

    drained = [sink.get(timeout=2) for _ in range(4)]
    watcher.stop()
    while watcher.state != WatcherState.STOPPED:
        try:
            sink.get(timeout=0.05)
        except queue.Empty:
            pass

    assert [r.runtime.total_seconds() for r in drained] == [1.0, 2.0, 3.0, 4.0]


def test_owned_executor_is_created_and_closed(monkeypatch):
    created = []

    def factory(**kwargs):
        executor = CountingExecutor()
        created.append((executor, kwargs))
        return executor

    monkeypatch.setattr(watcher_module, "ProbeExecutor", factory)
    runner = object()
    sink = queue.Queue()

    watcher = watch(make_service(interval=60), sink, session_runner=runner)
    sink.get(timeout=2)
    watcher.stop()
    assert watcher.join(2)

    executor, kwargs = created[0]
    assert kwargs["session_runner"] is runner
    assert executor.closed is True


def test_watcher_logs_are_scoped_to_service(caplog):
    sink = queue.Queue()
    service = Service(id="billing", endpoint="https://billing.example/", interval=60)

    with caplog.at_level(logging.INFO, logger="petze.watch.watcher"):
        watcher = Watcher(service, sink, executor=CrashingExecutor()).start()
        sink.get(timeout=2)
        watcher.stop()
        assert watcher.join(2)

    records = [r for r in caplog.records if r.name == "petze.watch.watcher"]
    assert [r.getMessage() for r in records] == [
        "[billing] watching https://billing.example/ every 60s",
        "[billing] probe crashed",
        "[billing] stopped watching",
    ]
    assert all(r.service_id == "billing" for r in records)
