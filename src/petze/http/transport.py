# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx transport that dials through the FaultClassifier."""

from __future__ import annotations

import logging
import ssl
from collections.abc import Iterator
from contextlib import contextmanager

import certifi
import httpcore
import httpx

from ..config import ProbeSettings, load_probe_settings
from .dialer import FaultClassifier

logger = logging.getLogger(__name__)

# Most specific first.
_EXCEPTION_MAP: tuple[tuple[type[Exception], type[httpx.TransportError]], ...] = (
    (httpcore.ConnectTimeout, httpx.ConnectTimeout),
    (httpcore.ReadTimeout, httpx.ReadTimeout),
    (httpcore.WriteTimeout, httpx.WriteTimeout),
    (httpcore.PoolTimeout, httpx.PoolTimeout),
    (httpcore.TimeoutException, httpx.TimeoutException),
    (httpcore.ConnectError, httpx.ConnectError),
    (httpcore.ReadError, httpx.ReadError),
    (httpcore.WriteError, httpx.WriteError),
    (httpcore.NetworkError, httpx.NetworkError),
    (httpcore.ProxyError, httpx.ProxyError),
    (httpcore.UnsupportedProtocol, httpx.UnsupportedProtocol),
    (httpcore.LocalProtocolError, httpx.LocalProtocolError),
    (httpcore.RemoteProtocolError, httpx.RemoteProtocolError),
    (httpcore.ProtocolError, httpx.ProtocolError),
)


@contextmanager
def map_httpcore_exceptions() -> Iterator[None]:
    """Re-raise httpcore errors as their httpx counterparts, chaining the original."""
    try:
        yield
    except Exception as exc:
        for source, target in _EXCEPTION_MAP:
            if isinstance(exc, source):
                raise target(str(exc)) from exc
        raise


def build_ssl_context(settings: ProbeSettings) -> tuple[ssl.SSLContext, Exception | None]:
    """
    Build the verifying client context.

    A trust store that cannot be loaded is not fatal here; the error is handed
    to the classifier so that every TLS dial reports it.
    """
    cafile = settings.ca_bundle or certifi.where()
    try:
        return ssl.create_default_context(cafile=cafile), None
    except OSError as exc:
        logger.error("could not load trust store %s: %s", cafile, exc)
        return ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT), exc


class ResponseStream(httpx.SyncByteStream):
    def __init__(self, stream: Iterator[bytes]):
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        with map_httpcore_exceptions():
            for part in self._stream:
                yield part

    def close(self) -> None:
        if hasattr(self._stream, "close"):
            self._stream.close()


class ProbeTransport(httpx.BaseTransport):
    """
    Connection pool without keep-alive, so every request performs its own dial.

    A probe therefore dials at most once, and whatever the classifier records
    during a request belongs to that request.
    """

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        *,
        network_backend: httpcore.NetworkBackend | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ):
        self.settings = settings or load_probe_settings()
        trust_store_error: Exception | None = None
        if ssl_context is None:
            ssl_context, trust_store_error = build_ssl_context(self.settings)
        self.classifier = FaultClassifier(self.settings, backend=network_backend, trust_store_error=trust_store_error)
        self._pool = httpcore.ConnectionPool(
            ssl_context=ssl_context,
            max_keepalive_connections=0,
            keepalive_expiry=0.0,
            retries=0,
            network_backend=self.classifier,
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        core_request = httpcore.Request(
            method=request.method,
            url=httpcore.URL(
                scheme=request.url.raw_scheme,
                host=request.url.raw_host,
                port=request.url.port,
                target=request.url.raw_path,
            ),
            headers=request.headers.raw,
            content=request.stream,
            extensions=request.extensions,
        )
        with map_httpcore_exceptions():
            core_response = self._pool.handle_request(core_request)

        return httpx.Response(
            status_code=core_response.status,
            headers=core_response.headers,
            stream=ResponseStream(core_response.stream),
            extensions=core_response.extensions,
        )

    def close(self) -> None:
        self._pool.close()


__all__ = ["ProbeTransport", "ResponseStream", "build_ssl_context", "map_httpcore_exceptions"]
