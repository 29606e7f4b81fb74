# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by probes, watchers and result consumers."""

import socket
import ssl
from dataclasses import dataclass
from enum import Enum


class ErrorType(str, Enum):
    """Classification tags carried by every ProbeError (serialized verbatim)."""

    INVALID_ENDPOINT = "endpointInvalid"
    SERVER_TOO_SLOW = "serverTooSlow"
    NOT_IMPLEMENTED = "notImplemented"
    UNKNOWN_ERROR = "unknownError"
    CLIENT_ERROR = "clientError"
    DNS = "dns"
    DNS_CONFIG = "dnsConfig"
    TLS_CERTIFICATE_INVALID = "tlsCertificateInvalid"
    TLS_HOSTNAME_ERROR = "tlsHostNameError"
    TLS_SYSTEM_ROOTS_ERROR = "tlsSystemRootsError"
    # Historical spelling; dashboards match on it.
    TLS_UNKNOWN_AUTHORITY = "tlsUnknownAutority"
    WRONG_HTTP_STATUS = "wrongHTTPStatus"
    CERTIFICATE_IS_EXPIRING = "certificateIsExpiring"
    UNEXPECTED_CONTENT_TYPE = "unexpectedContentType"
    SESSION_FAIL = "sessionFail"
    GOQUERY_MISMATCH = "goqueryMismatch"
    GOQUERY = "goQueryGeneralError"
    DATA_MISMATCH = "dataMismatch"
    JSON_PATH = "jsonPathError"
    REGEX = "regexError"
    BAD_RESPONSE_BODY = "badResponseBody"
    CREDENTIALS = "credentialsError"


class FaultKind(str, Enum):
    """Low-level failure categories captured while dialing or handshaking."""

    TLS_HOSTNAME = "TLS_HOSTNAME"
    TLS_ROOTS = "TLS_ROOTS"
    TLS_AUTHORITY = "TLS_AUTHORITY"
    TLS_CERTIFICATE = "TLS_CERTIFICATE"
    UNKNOWN = "UNKNOWN"
    DNS_CONFIG = "DNS_CONFIG"
    DNS = "DNS"
    GENERIC = "GENERIC"


# Order in which recorded faults are consulted after a failed round trip.
FAULT_PRIORITY: tuple[FaultKind, ...] = (
    FaultKind.TLS_HOSTNAME,
    FaultKind.TLS_ROOTS,
    FaultKind.TLS_AUTHORITY,
    FaultKind.TLS_CERTIFICATE,
    FaultKind.UNKNOWN,
    FaultKind.DNS_CONFIG,
    FaultKind.DNS,
    FaultKind.GENERIC,
)

FAULT_ERROR_TYPES: dict[FaultKind, ErrorType] = {
    FaultKind.TLS_HOSTNAME: ErrorType.TLS_HOSTNAME_ERROR,
    FaultKind.TLS_ROOTS: ErrorType.TLS_SYSTEM_ROOTS_ERROR,
    FaultKind.TLS_AUTHORITY: ErrorType.TLS_UNKNOWN_AUTHORITY,
    FaultKind.TLS_CERTIFICATE: ErrorType.TLS_CERTIFICATE_INVALID,
    FaultKind.UNKNOWN: ErrorType.UNKNOWN_ERROR,
    FaultKind.DNS_CONFIG: ErrorType.DNS_CONFIG,
    FaultKind.DNS: ErrorType.DNS,
    FaultKind.GENERIC: ErrorType.UNKNOWN_ERROR,
}

# Faults whose timeout flag is carried into the result.
NETWORK_FAULT_KINDS = frozenset({FaultKind.DNS_CONFIG, FaultKind.DNS, FaultKind.GENERIC})


# getaddrinfo codes meaning "the name could not be resolved"; every other code
# points at a broken resolver setup.
_DNS_LOOKUP_CODES = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_AGAIN", None),
        getattr(socket, "EAI_FAIL", None),
        getattr(socket, "EAI_NODATA", None),
        getattr(socket, "EAI_ADDRFAMILY", None),
    )
    if code is not None
)

# OpenSSL X509_V_ERR_* codes.
_HOSTNAME_VERIFY_CODES = frozenset({62, 63, 64})
_AUTHORITY_VERIFY_CODES = frozenset({2, 18, 19, 20, 21, 27})


@dataclass(frozen=True)
class DialFault:
    """A low-level failure captured while dialing, tagged with its category."""

    kind: FaultKind
    error: BaseException
    timeout: bool = False

    @property
    def error_type(self) -> ErrorType:
        return FAULT_ERROR_TYPES[self.kind]

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


def root_cause(exc: BaseException) -> BaseException:
    """
    Return the innermost OS-level error behind a transport exception.

    httpcore/httpx re-raise socket and ssl errors ``from`` the original, so the
    detail survives on the exception chain.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError):
            return current
        current = current.__cause__ or current.__context__
    return exc


def classify_dial_error(exc: BaseException) -> DialFault:
    """Map a failed TCP dial (including name resolution) to a DialFault."""
    root = root_cause(exc)
    timed_out = isinstance(root, TimeoutError)
    if isinstance(root, socket.gaierror):
        kind = FaultKind.DNS if root.errno in _DNS_LOOKUP_CODES else FaultKind.DNS_CONFIG
        return DialFault(kind=kind, error=root, timeout=timed_out)
    if isinstance(root, ssl.SSLError):
        return classify_tls_error(exc)
    if isinstance(root, OSError) and root.errno is not None:
        return DialFault(kind=FaultKind.UNKNOWN, error=root, timeout=timed_out)
    return DialFault(kind=FaultKind.GENERIC, error=root, timeout=timed_out)


def classify_tls_error(exc: BaseException) -> DialFault:
    """Map a failed TLS handshake to a DialFault."""
    root = root_cause(exc)
    if isinstance(root, ssl.SSLCertVerificationError):
        code = getattr(root, "verify_code", None)
        if code in _HOSTNAME_VERIFY_CODES:
            kind = FaultKind.TLS_HOSTNAME
        elif code in _AUTHORITY_VERIFY_CODES:
            kind = FaultKind.TLS_AUTHORITY
        else:
            kind = FaultKind.TLS_CERTIFICATE
        return DialFault(kind=kind, error=root)
    if isinstance(root, ssl.SSLError):
        return DialFault(kind=FaultKind.UNKNOWN, error=root)
    if isinstance(root, OSError):
        return classify_dial_error(root)
    return DialFault(kind=FaultKind.GENERIC, error=root, timeout=isinstance(root, TimeoutError))


def error_type_to_reason(error_type: ErrorType | str | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorType.INVALID_ENDPOINT: "Endpoint is not a valid URL",
        ErrorType.DNS: "DNS resolution failure",
        ErrorType.DNS_CONFIG: "Broken resolver configuration",
        ErrorType.TLS_HOSTNAME_ERROR: "Certificate does not match host name",
        ErrorType.TLS_UNKNOWN_AUTHORITY: "Certificate signed by unknown authority",
        ErrorType.TLS_CERTIFICATE_INVALID: "Certificate is invalid",
        ErrorType.TLS_SYSTEM_ROOTS_ERROR: "Local trust store could not be loaded",
        ErrorType.CERTIFICATE_IS_EXPIRING: "Certificate expires soon",
        ErrorType.CLIENT_ERROR: "HTTP client error",
        ErrorType.UNKNOWN_ERROR: "Network error",
        ErrorType.WRONG_HTTP_STATUS: "Unexpected HTTP status",
        ErrorType.SESSION_FAIL: "Session check failed",
        None: "",
    }
    try:
        key = ErrorType(error_type) if error_type is not None else None
    except ValueError:
        return "Probe failed"
    return mapping.get(key, "Probe failed")


__all__ = [
    "DialFault",
    "ErrorType",
    "FAULT_ERROR_TYPES",
    "FAULT_PRIORITY",
    "FaultKind",
    "NETWORK_FAULT_KINDS",
    "classify_dial_error",
    "classify_tls_error",
    "error_type_to_reason",
    "root_cause",
]
