# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .certificates import expiring_certificates, peer_certificates
from .client import create_probe_client
from .dialer import ClassifyingStream, FaultClassifier
from .transport import ProbeTransport, build_ssl_context, map_httpcore_exceptions

__all__ = [
    "ClassifyingStream",
    "FaultClassifier",
    "ProbeTransport",
    "build_ssl_context",
    "create_probe_client",
    "expiring_certificates",
    "map_httpcore_exceptions",
    "peer_certificates",
]
