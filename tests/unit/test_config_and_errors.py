# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import errno
import socket
import ssl
from datetime import timedelta

import httpcore
import httpx
from fakes import cert_verify_error, chained

from petze import config
from petze.config import DEFAULT_USER_AGENT, ProbeSettings
from petze.errors import (
    FAULT_PRIORITY,
    ErrorType,
    FaultKind,
    classify_dial_error,
    classify_tls_error,
    error_type_to_reason,
    root_cause,
)


def test_probe_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("PETZE_DIAL_TIMEOUT", "2.5")
    monkeypatch.setenv("PETZE_HTTP_TIMEOUT", "12")
    monkeypatch.setenv("PETZE_CERT_EXPIRY_HOURS", "48")
    monkeypatch.setenv("PETZE_USER_AGENT", "Probe/1.0")
    monkeypatch.setenv("PETZE_CA_BUNDLE", "/etc/ssl/custom.pem")
    monkeypatch.setenv("PETZE_SINK_SIZE", "16")

    settings = config.load_probe_settings()

    assert settings.dial_timeout == 2.5
    assert settings.timeout == 12.0
    assert settings.certificate_expiry_warning == timedelta(hours=48)
    assert settings.user_agent == "Probe/1.0"
    assert settings.ca_bundle == "/etc/ssl/custom.pem"
    assert settings.sink_size == 16


def test_probe_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("PETZE_DIAL_TIMEOUT", "-1")
    monkeypatch.setenv("PETZE_HTTP_TIMEOUT", "soon")
    monkeypatch.setenv("PETZE_SINK_SIZE", "many")

    settings = config.load_probe_settings()

    assert settings.dial_timeout == ProbeSettings.dial_timeout
    assert settings.timeout == ProbeSettings.timeout
    assert settings.sink_size == 0
    assert settings.ca_bundle is None
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_default_expiry_window_is_seven_days():
    assert ProbeSettings().certificate_expiry_warning == timedelta(days=7)


def test_error_type_values_match_wire_tags():
    assert ErrorType.INVALID_ENDPOINT.value == "endpointInvalid"
    assert ErrorType.TLS_HOSTNAME_ERROR.value == "tlsHostNameError"
    assert ErrorType.TLS_UNKNOWN_AUTHORITY.value == "tlsUnknownAutority"
    assert ErrorType.CERTIFICATE_IS_EXPIRING.value == "certificateIsExpiring"
    assert ErrorType.WRONG_HTTP_STATUS.value == "wrongHTTPStatus"


def test_fault_priority_order():
    assert FAULT_PRIORITY == (
        FaultKind.TLS_HOSTNAME,
        FaultKind.TLS_ROOTS,
        FaultKind.TLS_AUTHORITY,
        FaultKind.TLS_CERTIFICATE,
        FaultKind.UNKNOWN,
        FaultKind.DNS_CONFIG,
        FaultKind.DNS,
        FaultKind.GENERIC,
    )


def test_root_cause_walks_httpx_and_httpcore_wrapping():
    gai = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    core = chained(gai)
    outer = chained(core, httpx.ConnectError)
    assert root_cause(outer) is gai


def test_classify_dial_error_dns_and_dns_config():
    dns = classify_dial_error(chained(socket.gaierror(socket.EAI_NONAME, "Name or service not known")))
    assert dns.kind == FaultKind.DNS
    assert dns.error_type == ErrorType.DNS
    assert dns.timeout is False

    config_fault = classify_dial_error(chained(socket.gaierror(socket.EAI_SERVICE, "Servname not supported")))
    assert config_fault.kind == FaultKind.DNS_CONFIG
    assert config_fault.error_type == ErrorType.DNS_CONFIG


def test_classify_dial_error_refused_and_timeout():
    refused = classify_dial_error(chained(ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")))
    assert refused.kind == FaultKind.UNKNOWN
    assert refused.error_type == ErrorType.UNKNOWN_ERROR
    assert "refused" in refused.message

    timed_out = classify_dial_error(chained(TimeoutError("timed out"), httpcore.ConnectTimeout))
    assert timed_out.kind == FaultKind.GENERIC
    assert timed_out.timeout is True


def test_classify_dial_error_without_os_error_is_generic():
    fault = classify_dial_error(httpcore.ConnectError("no route"))
    assert fault.kind == FaultKind.GENERIC
    assert fault.message == "no route"


def test_classify_tls_error_by_verify_code():
    assert classify_tls_error(chained(cert_verify_error(62, "Hostname mismatch"))).kind == FaultKind.TLS_HOSTNAME
    assert classify_tls_error(chained(cert_verify_error(20, "unable to get local issuer certificate"))).kind == FaultKind.TLS_AUTHORITY
    assert classify_tls_error(chained(cert_verify_error(18, "self-signed certificate"))).kind == FaultKind.TLS_AUTHORITY
    expired = classify_tls_error(chained(cert_verify_error(10, "certificate has expired")))
    assert expired.kind == FaultKind.TLS_CERTIFICATE
    assert expired.error_type == ErrorType.TLS_CERTIFICATE_INVALID
    assert expired.timeout is False


def test_classify_tls_error_other_failures():
    handshake = classify_tls_error(chained(ssl.SSLError(1, "[SSL: WRONG_VERSION_NUMBER] wrong version number")))
    assert handshake.kind == FaultKind.UNKNOWN

    reset = classify_tls_error(chained(ConnectionResetError(errno.ECONNRESET, "Connection reset by peer")))
    assert reset.kind == FaultKind.UNKNOWN

    slow = classify_tls_error(chained(TimeoutError("handshake timed out"), httpcore.ConnectTimeout))
    assert slow.timeout is True


def test_error_type_to_reason():
    assert error_type_to_reason(ErrorType.DNS) == "DNS resolution failure"
    assert error_type_to_reason("wrongHTTPStatus") == "Unexpected HTTP status"
    assert error_type_to_reason(None) == ""
    assert error_type_to_reason("nonsense") == "Probe failed"
    assert error_type_to_reason(ErrorType.REGEX) == "Probe failed"
