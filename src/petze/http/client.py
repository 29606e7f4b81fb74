# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe client factory."""

import httpx

from ..config import ProbeSettings, load_probe_settings


def create_probe_client(
    settings: ProbeSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """
    Factory for the client a watcher probes with.

    Redirects are never followed: a 3xx is the probe's answer, not a hop.
    """
    from .transport import ProbeTransport

    settings = settings or load_probe_settings()
    return httpx.Client(
        transport=transport or ProbeTransport(settings),
        follow_redirects=False,
        trust_env=False,
        timeout=httpx.Timeout(settings.timeout, connect=settings.dial_timeout),
        headers={"User-Agent": settings.user_agent},
    )
