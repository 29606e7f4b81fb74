# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe execution and per-service watch loops."""

from .probe import InvalidEndpoint, ProbeExecutor, resolve_host
from .session import NoSessionRunner, SessionFailure, SessionRunner
from .watcher import ResultSink, Watcher, WatcherState, watch

__all__ = [
    "InvalidEndpoint",
    "NoSessionRunner",
    "ProbeExecutor",
    "ResultSink",
    "SessionFailure",
    "SessionRunner",
    "Watcher",
    "WatcherState",
    "resolve_host",
    "watch",
]
