# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for Petze."""

from .result import ProbeError, ProbeResult
from .service import Service, parse_interval

__all__ = [
    "ProbeError",
    "ProbeResult",
    "Service",
    "parse_interval",
]
