# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Watched service descriptor."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_DURATION_PART_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?)(?P<unit>ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_interval(value: Any) -> float:
    """
    Convert an interval to seconds.

    Numbers are taken as seconds; strings may use duration notation such as
    ``30s``, ``1m30s`` or ``500ms``.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid interval: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("interval is empty")
    try:
        return float(raw)
    except ValueError:
        pass
    total = 0.0
    pos = 0
    for match in _DURATION_PART_RE.finditer(raw):
        if match.start() != pos:
            raise ValueError(f"invalid interval: {value!r}")
        total += float(match.group("value")) * _DURATION_UNITS[match.group("unit")]
        pos = match.end()
    if pos != len(raw):
        raise ValueError(f"invalid interval: {value!r}")
    return total


@dataclass(frozen=True)
class Service:
    """
    A monitored endpoint.

    The endpoint is intentionally not validated here: a malformed endpoint is
    reported as a probe error, not as a startup failure.
    """

    id: str
    endpoint: str
    interval: float
    session: tuple[Mapping[str, Any], ...] | None = None

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"service {self.id!r}: interval must be > 0, got {self.interval!r}")
        if self.session is not None and not isinstance(self.session, tuple):
            object.__setattr__(self, "session", tuple(self.session))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Service:
        """Build a Service from the collector's dict representation."""
        session = data.get("session")
        if session is not None and not isinstance(session, (list, tuple)):
            raise ValueError(f"service {data.get('id')!r}: session must be a list")
        return cls(
            id=str(data.get("id") or ""),
            endpoint=str(data.get("endpoint") or ""),
            interval=parse_interval(data.get("interval")),
            session=tuple(session) if session else None,
        )


__all__ = ["Service", "parse_interval"]
