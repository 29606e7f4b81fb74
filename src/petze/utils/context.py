# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-probe ambient fault recorder.

The network backend records what went wrong while dialing into the recorder
bound to the current context; the probe executor binds a fresh recorder around
each round trip and reads it back afterwards. Binding is per thread/context, so
watchers running concurrently never see each other's faults.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field

from ..errors import FAULT_PRIORITY, DialFault, FaultKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateWarning:
    """A peer certificate that is about to expire."""

    message: str
    common_name: str = ""


@dataclass
class FaultRecorder:
    """One slot per fault kind plus the handshake warnings seen so far."""

    faults: dict[FaultKind, DialFault] = field(default_factory=dict)
    warnings: list[CertificateWarning] = field(default_factory=list)

    def record(self, fault: DialFault) -> None:
        if fault.kind in self.faults:
            logger.debug("overwriting %s fault: %s", fault.kind.value, self.faults[fault.kind].message)
        self.faults[fault.kind] = fault

    def warn(self, warning: CertificateWarning) -> None:
        self.warnings.append(warning)

    def primary(self) -> DialFault | None:
        """Return the first recorded fault in priority order."""
        for kind in FAULT_PRIORITY:
            fault = self.faults.get(kind)
            if fault is not None:
                return fault
        return None

    def reset(self) -> None:
        self.faults.clear()
        self.warnings.clear()


_current_recorder: ContextVar[FaultRecorder | None] = ContextVar("petze_fault_recorder", default=None)


def get_fault_recorder() -> FaultRecorder | None:
    """Return the recorder bound to the current context, if any."""
    return _current_recorder.get()


@contextmanager
def recording(recorder: FaultRecorder | None = None) -> Iterator[FaultRecorder]:
    """Bind ``recorder`` (or a new one) for the duration of the block."""
    active = recorder if recorder is not None else FaultRecorder()
    token = _current_recorder.set(active)
    try:
        yield active
    finally:
        _current_recorder.reset(token)


__all__ = [
    "CertificateWarning",
    "FaultRecorder",
    "get_fault_recorder",
    "recording",
]
