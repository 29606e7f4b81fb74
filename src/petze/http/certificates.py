# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Peer certificate inspection for completed TLS handshakes."""

from __future__ import annotations

import ssl
from datetime import datetime, timedelta, timezone
from typing import Any

from ..utils.context import CertificateWarning


def peer_certificates(ssl_object: Any) -> list[dict[str, Any]]:
    """
    Return decoded peer certificates for a handshaken ssl object.

    The chain as sent by the server is used when the interpreter exposes it
    (Python 3.13+), so local trust anchors the server never presented are not
    inspected; otherwise only the leaf from ``getpeercert()`` is available.
    """
    if ssl_object is None:
        return []
    certs: list[dict[str, Any]] = []
    get_chain = getattr(ssl_object, "get_unverified_chain", None)
    if callable(get_chain):
        try:
            chain = get_chain() or []
        except (ssl.SSLError, ValueError):
            chain = []
        for cert in chain:
            get_info = getattr(cert, "get_info", None)
            if callable(get_info):
                info = get_info()
                if isinstance(info, dict):
                    certs.append(info)
    if not certs:
        getpeercert = getattr(ssl_object, "getpeercert", None)
        leaf = getpeercert() if callable(getpeercert) else None
        if isinstance(leaf, dict) and leaf:
            certs.append(leaf)
    return certs


def certificate_common_name(cert: dict[str, Any]) -> str:
    for rdn in cert.get("subject") or ():
        for key, value in rdn:
            if key == "commonName":
                return str(value)
    return ""


def certificate_not_after(cert: dict[str, Any]) -> datetime | None:
    raw = cert.get("notAfter")
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromtimestamp(ssl.cert_time_to_seconds(raw.strip()), tz=timezone.utc)
    except ValueError:
        return None


def expiring_certificates(
    certs: list[dict[str, Any]],
    *,
    window: timedelta,
    now: datetime | None = None,
) -> list[CertificateWarning]:
    """Return a warning for every certificate whose notAfter falls inside ``window``."""
    current = now or datetime.now(timezone.utc)
    warnings: list[CertificateWarning] = []
    for cert in certs:
        not_after = certificate_not_after(cert)
        if not_after is None:
            continue
        left = not_after - current
        if left < window:
            common_name = certificate_common_name(cert)
            warnings.append(
                CertificateWarning(
                    message=f'cert CN="{common_name}" is expiring in less than {window}: {not_after.isoformat()}, left: {left}',
                    common_name=common_name,
                )
            )
    return warnings


__all__ = [
    "certificate_common_name",
    "certificate_not_after",
    "expiring_certificates",
    "peer_certificates",
]
