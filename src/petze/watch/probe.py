# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single probe attempt: endpoint -> DNS pre-check -> round trip -> session -> status."""

from __future__ import annotations

import socket
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..errors import NETWORK_FAULT_KINDS, ErrorType
from ..http.client import create_probe_client
from ..log import service_logger
from ..models import ProbeError, ProbeResult, Service
from ..utils.context import FaultRecorder, recording
from .session import NoSessionRunner, SessionFailure, SessionRunner

Resolver = Callable[[str], Any]


class InvalidEndpoint(ValueError):
    """The endpoint cannot be turned into a GET request."""


def resolve_host(host: str) -> list[Any]:
    return socket.getaddrinfo(host, None)


class ProbeExecutor:
    """
    Runs probe attempts for a watcher.

    One executor owns one client; it is not meant to be shared between
    concurrently running watchers.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        settings: ProbeSettings | None = None,
        session_runner: SessionRunner | None = None,
        resolver: Resolver | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.client = client or create_probe_client(self.settings)
        self.session_runner = session_runner or NoSessionRunner()
        self._resolve = resolver or resolve_host

    def build_request(self, endpoint: str) -> httpx.Request:
        try:
            url = httpx.URL(endpoint)
            if url.scheme not in ("http", "https"):
                raise InvalidEndpoint(f"unsupported protocol scheme {url.scheme!r} in {endpoint!r}")
            if not url.host:
                raise InvalidEndpoint(f"no host in endpoint {endpoint!r}")
            return self.client.build_request("GET", url)
        except InvalidEndpoint:
            raise
        # ValueError covers IDNA/punycode host failures raised during parsing.
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise InvalidEndpoint(f"invalid endpoint {endpoint!r}: {exc}") from exc

    def run(self, service: Service) -> ProbeResult:
        """Probe ``service`` once. Never raises for probe failures."""
        timestamp = datetime.now(timezone.utc)
        started = time.monotonic()
        errors: list[ProbeError] = []

        def result(timeout: bool = False) -> ProbeResult:
            return ProbeResult(
                id=service.id,
                errors=tuple(errors),
                timeout=timeout,
                timestamp=timestamp,
                runtime=timedelta(seconds=time.monotonic() - started),
            )

        try:
            request = self.build_request(service.endpoint)
        except InvalidEndpoint as exc:
            errors.append(ProbeError.from_exception(exc, ErrorType.INVALID_ENDPOINT))
            return result()

        # Resolve up front so a DNS problem is reported cleanly, not through the client's wrapping.
        host = request.url.host
        try:
            self._resolve(host)
        except (OSError, UnicodeError) as exc:
            service_logger(__name__, service.id).warning("dns lookup for %s failed: %s", host, exc)
            errors.append(ProbeError.from_exception(exc, ErrorType.DNS))
            return result()

        recorder = FaultRecorder()
        response: httpx.Response | None = None
        failure: Exception | None = None
        try:
            with recording(recorder):
                response = self.client.send(request, stream=True)
        except Exception as exc:  # noqa: BLE001
            failure = exc
        finally:
            if response is not None:
                response.close()

        for warning in recorder.warnings:
            errors.append(ProbeError(error=warning.message, type=ErrorType.CERTIFICATE_IS_EXPIRING))

        if failure is not None or response is None:
            return result(timeout=self._record_failure(failure, recorder, errors))

        self.client.cookies = httpx.Cookies()
        session_failure = self._run_session(service, result())
        if session_failure is not None:
            service_logger(__name__, service.id).error("session error: %s", session_failure)
            errors.append(
                ProbeError(
                    error=str(session_failure) or type(session_failure).__name__,
                    type=ErrorType.SESSION_FAIL,
                    comment=session_failure.comment,
                )
            )

        if response.status_code != 200:
            errors.append(ProbeError(error=f"unexpected status code: {response.status_code}", type=ErrorType.WRONG_HTTP_STATUS))
        return result()

    def _record_failure(self, failure: Exception | None, recorder: FaultRecorder, errors: list[ProbeError]) -> bool:
        """Append the client error plus the primary classified fault; return the timeout flag."""
        if failure is None:
            failure = RuntimeError("no response received")
        errors.append(ProbeError.from_exception(failure, ErrorType.CLIENT_ERROR))
        timeout = isinstance(failure, httpx.TimeoutException)
        fault = recorder.primary()
        if fault is not None:
            errors.append(ProbeError(error=fault.message, type=fault.error_type))
            if fault.kind in NETWORK_FAULT_KINDS:
                timeout = timeout or fault.timeout
        return timeout

    def _run_session(self, service: Service, partial: ProbeResult) -> SessionFailure | None:
        try:
            return self.session_runner.run(service, self.client, partial)
        except SessionFailure as exc:
            return exc
        except Exception as exc:  # noqa: BLE001
            service_logger(__name__, service.id).exception("session runner crashed")
            return SessionFailure(str(exc) or type(exc).__name__, ErrorType.SESSION_FAIL, comment=type(exc).__name__)

    def close(self) -> None:
        self.client.close()


__all__ = ["InvalidEndpoint", "ProbeExecutor", "Resolver", "resolve_host"]
