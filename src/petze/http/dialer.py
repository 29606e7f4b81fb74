# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Fault-classifying network backend.

httpx reports every connection problem as a generic ``ConnectError``. This
backend sits underneath httpcore, performs the real dial and TLS handshake and
records a classified DialFault into the current FaultRecorder before the error
is generalized. The original exception is always re-raised unchanged.
"""

from __future__ import annotations

import logging
import ssl
from collections.abc import Iterable
from typing import Any

import httpcore

from ..config import ProbeSettings, load_probe_settings
from ..errors import DialFault, FaultKind, classify_dial_error, classify_tls_error
from ..utils.context import get_fault_recorder
from .certificates import expiring_certificates, peer_certificates

logger = logging.getLogger(__name__)

_DIAL_ERRORS = (httpcore.NetworkError, httpcore.TimeoutException, OSError)


class FaultClassifier(httpcore.NetworkBackend):
    """httpcore backend that classifies dial and TLS handshake failures."""

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        backend: httpcore.NetworkBackend | None = None,
        trust_store_error: Exception | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.trust_store_error = trust_store_error
        self._backend = backend or httpcore.SyncBackend()

    def dial_timeout(self, timeout: float | None) -> float:
        limit = self.settings.dial_timeout
        return limit if timeout is None else min(timeout, limit)

    def record(self, fault: DialFault, address: str) -> None:
        logger.warning("%s fault dialing %s: %s", fault.kind.value, address, fault.message)
        recorder = get_fault_recorder()
        if recorder is not None:
            recorder.record(fault)

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.NetworkStream:
        try:
            stream = self._backend.connect_tcp(
                host,
                port,
                timeout=self.dial_timeout(timeout),
                local_address=local_address,
                socket_options=socket_options,
            )
        except _DIAL_ERRORS as exc:
            self.record(classify_dial_error(exc), f"{host}:{port}")
            raise
        return ClassifyingStream(stream, self, f"{host}:{port}")

    def sleep(self, seconds: float) -> None:
        self._backend.sleep(seconds)

    def start_tls(
        self,
        stream: httpcore.NetworkStream,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None,
        timeout: float | None,
        address: str,
    ) -> httpcore.NetworkStream:
        if self.trust_store_error is not None:
            self.record(DialFault(kind=FaultKind.TLS_ROOTS, error=self.trust_store_error), address)
            raise httpcore.ConnectError(f"trust store unavailable: {self.trust_store_error}") from self.trust_store_error
        try:
            tls_stream = stream.start_tls(ssl_context, server_hostname=server_hostname, timeout=self.dial_timeout(timeout))
        except _DIAL_ERRORS as exc:
            fault = classify_tls_error(exc)
            if fault.kind == FaultKind.UNKNOWN and isinstance(fault.error, ssl.SSLError):
                logger.error("unknown tls error %s: %s", type(fault.error).__name__, fault.error)
            self.record(fault, address)
            raise
        self.check_certificates(tls_stream, address)
        return tls_stream

    def check_certificates(self, stream: httpcore.NetworkStream, address: str) -> None:
        """Warn about peer certificates close to expiry; runs on every successful handshake."""
        certs = peer_certificates(stream.get_extra_info("ssl_object"))
        warnings = expiring_certificates(certs, window=self.settings.certificate_expiry_warning)
        if not warnings:
            return
        recorder = get_fault_recorder()
        for warning in warnings:
            logger.warning("%s: %s", address, warning.message)
            if recorder is not None:
                recorder.warn(warning)


class ClassifyingStream(httpcore.NetworkStream):
    """Delegating stream that routes ``start_tls`` through the classifier."""

    def __init__(self, stream: httpcore.NetworkStream, classifier: FaultClassifier, address: str):
        self._stream = stream
        self._classifier = classifier
        self._address = address

    def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        return self._stream.read(max_bytes, timeout=timeout)

    def write(self, buffer: bytes, timeout: float | None = None) -> None:
        self._stream.write(buffer, timeout=timeout)

    def close(self) -> None:
        self._stream.close()

    def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.NetworkStream:
        tls_stream = self._classifier.start_tls(self._stream, ssl_context, server_hostname, timeout, self._address)
        return ClassifyingStream(tls_stream, self._classifier, self._address)

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


__all__ = ["ClassifyingStream", "FaultClassifier"]
