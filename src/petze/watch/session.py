# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Session runner contract consumed by the probe executor."""

from __future__ import annotations

from typing import Protocol

import httpx

from ..errors import ErrorType
from ..models import ProbeResult, Service


class SessionFailure(Exception):
    """
    A failed session check.

    ``error_type`` names the runner's own category (credentials, regex,
    JSON path, DOM query, ...); the probe records it as the comment of a
    ``sessionFail`` error.
    """

    def __init__(self, message: str, error_type: ErrorType = ErrorType.SESSION_FAIL, comment: str | None = None):
        super().__init__(message)
        self.error_type = error_type
        if comment is None:
            comment = "" if error_type == ErrorType.SESSION_FAIL else error_type.value
        self.comment = comment


class SessionRunner(Protocol):
    """Runs a service's session steps with a cookie-bearing client."""

    def run(self, service: Service, client: httpx.Client, result: ProbeResult) -> SessionFailure | None: ...


class NoSessionRunner:
    """Default runner: nothing to do unless a session is configured."""

    def run(self, service: Service, client: httpx.Client, result: ProbeResult) -> SessionFailure | None:  # noqa: ARG002
        if service.session:
            return SessionFailure(
                f"service {service.id!r} defines {len(service.session)} session step(s) but no session runner is installed",
                ErrorType.NOT_IMPLEMENTED,
            )
        return None


__all__ = ["NoSessionRunner", "SessionFailure", "SessionRunner"]
