# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for Petze."""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from typing import Any

DEFAULT_LOG_LEVEL = os.getenv("PETZE_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


class ServiceLogAdapter(logging.LoggerAdapter):
    """
    Logger bound to one watched service.

    Messages are prefixed with ``[service-id]`` and every record carries a
    ``service_id`` attribute, so output from concurrently running watchers can
    be told apart and filtered.
    """

    def __init__(self, logger: logging.Logger, service_id: str):
        super().__init__(logger, {"service_id": service_id})

    @property
    def service_id(self) -> str:
        return str(self.extra["service_id"])

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("service_id", self.service_id)
        kwargs["extra"] = extra
        return f"[{self.service_id}] {msg}", kwargs


def service_logger(name: str, service_id: str) -> ServiceLogAdapter:
    """Return a logger for module ``name`` scoped to ``service_id``."""
    return ServiceLogAdapter(logging.getLogger(name), service_id)


def setup_logging(level: str | None = None) -> None:
    """Configure standard logging for CLI/library use."""
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format=LOG_FORMAT,
    )


__all__ = ["ServiceLogAdapter", "service_logger", "setup_logging"]
