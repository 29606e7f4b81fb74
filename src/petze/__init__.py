# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Petze package entrypoint.

Petze watches HTTP(S) services and attributes every failed probe to a precise
cause (DNS, TLS, certificate expiry, transport, HTTP status or session).
Connection failures are classified underneath httpx, in a network backend that
sees the original socket and ssl errors, and every probe produces one frozen
ProbeResult.
"""

from .config import ProbeSettings, load_probe_settings
from .errors import DialFault, ErrorType, FaultKind
from .http import FaultClassifier, ProbeTransport, create_probe_client
from .log import setup_logging
from .models import ProbeError, ProbeResult, Service
from .runtime import Petze
from .version import __version__
from .watch import (
    NoSessionRunner,
    ProbeExecutor,
    SessionFailure,
    SessionRunner,
    Watcher,
    WatcherState,
    watch,
)

__all__ = [
    "DialFault",
    "ErrorType",
    "FaultClassifier",
    "FaultKind",
    "NoSessionRunner",
    "Petze",
    "ProbeError",
    "ProbeExecutor",
    "ProbeResult",
    "ProbeSettings",
    "ProbeTransport",
    "Service",
    "SessionFailure",
    "SessionRunner",
    "Watcher",
    "WatcherState",
    "create_probe_client",
    "load_probe_settings",
    "setup_logging",
    "watch",
    "__version__",
]
