# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import socket

import pytest


@pytest.fixture
def resolved():
    lookups = []

    def resolver(host):
        lookups.append(host)
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 0))]

    resolver.lookups = lookups
    return resolver


@pytest.fixture(autouse=True)
def _clean_petze_env(monkeypatch):
    for name in (
        "PETZE_DIAL_TIMEOUT",
        "PETZE_HTTP_TIMEOUT",
        "PETZE_CERT_EXPIRY_HOURS",
        "PETZE_USER_AGENT",
        "PETZE_CA_BUNDLE",
        "PETZE_SINK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
