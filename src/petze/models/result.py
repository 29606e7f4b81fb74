# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe result and error records published by watchers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from ..errors import ErrorType


@dataclass(frozen=True)
class ProbeError:
    error: str
    type: ErrorType
    comment: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException, error_type: ErrorType, comment: str = "") -> ProbeError:
        return cls(error=str(exc) or type(exc).__name__, type=error_type, comment=comment)

    def to_dict(self) -> dict[str, str]:
        data = {"error": self.error, "type": self.type.value}
        if self.comment:
            data["comment"] = self.comment
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProbeError:
        return cls(
            error=str(data.get("error") or ""),
            type=ErrorType(data.get("type")),
            comment=str(data.get("comment") or ""),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of exactly one probe attempt.

    An empty ``errors`` tuple means the probe succeeded. Instances are frozen;
    build the error list first and construct the result once.
    """

    id: str
    errors: tuple[ProbeError, ...] = ()
    timeout: bool = False
    timestamp: datetime = field(default_factory=_utcnow)
    runtime: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        if not isinstance(self.errors, tuple):
            object.__setattr__(self, "errors", tuple(self.errors))

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_types(self) -> list[ErrorType]:
        return [error.type for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; ``runtime`` is in nanoseconds."""
        return {
            "id": self.id,
            "errors": [error.to_dict() for error in self.errors],
            "timeout": self.timeout,
            "timestamp": self.timestamp.isoformat(),
            "runtime": self.runtime // timedelta(microseconds=1) * 1000,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProbeResult:
        raw_timestamp = data.get("timestamp")
        if isinstance(raw_timestamp, datetime):
            timestamp = raw_timestamp
        elif raw_timestamp:
            timestamp = datetime.fromisoformat(str(raw_timestamp))
        else:
            timestamp = _utcnow()
        raw_runtime = data.get("runtime") or 0
        runtime = raw_runtime if isinstance(raw_runtime, timedelta) else timedelta(microseconds=int(raw_runtime) / 1000)
        return cls(
            id=str(data.get("id") or ""),
            errors=tuple(ProbeError.from_mapping(item) for item in data.get("errors") or []),
            timeout=bool(data.get("timeout")),
            timestamp=timestamp,
            runtime=runtime,
        )


__all__ = ["ProbeError", "ProbeResult"]
