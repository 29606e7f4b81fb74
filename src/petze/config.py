# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for Petze."""

import os
from dataclasses import dataclass
from datetime import timedelta

from .version import __version__

DEFAULT_USER_AGENT = f"Petze/{__version__} (service probe)"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


@dataclass
class ProbeSettings:
    """Probe client defaults."""

    dial_timeout: float = 10.0
    timeout: float = 30.0
    certificate_expiry_hours: float = 7 * 24.0
    user_agent: str = DEFAULT_USER_AGENT
    ca_bundle: str | None = None
    sink_size: int = 0

    @property
    def certificate_expiry_warning(self) -> timedelta:
        return timedelta(hours=self.certificate_expiry_hours)

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        dial_timeout = _float_env("PETZE_DIAL_TIMEOUT", cls.dial_timeout)
        if dial_timeout <= 0:
            dial_timeout = cls.dial_timeout
        sink_size = _int_env("PETZE_SINK_SIZE", cls.sink_size)
        return cls(
            dial_timeout=dial_timeout,
            timeout=_float_env("PETZE_HTTP_TIMEOUT", cls.timeout),
            certificate_expiry_hours=_float_env("PETZE_CERT_EXPIRY_HOURS", cls.certificate_expiry_hours),
            user_agent=os.getenv("PETZE_USER_AGENT", cls.user_agent),
            ca_bundle=os.getenv("PETZE_CA_BUNDLE") or None,
            sink_size=sink_size if sink_size > 0 else 0,
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
