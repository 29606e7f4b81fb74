# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Petze CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..config import ProbeSettings, load_probe_settings
from ..errors import error_type_to_reason
from ..log import setup_logging
from ..models import ProbeResult, Service
from ..runtime import Petze
from ..watch import ProbeExecutor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Petze service probe (DNS/TLS/HTTP fault attribution)")
    parser.add_argument("urls", nargs="+", metavar="url", help="Endpoint(s) to probe")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Keep watching, probing every INTERVAL seconds",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop watching after COUNT results (default: until interrupted; requires --interval)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON lines instead of human-friendly summary",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: PETZE_LOG_LEVEL or WARNING)")
    return parser


def _print_json(data: dict[str, Any] | Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, sort_keys=True)
    sys.stdout.write("\n")
    sys.stdout.flush()


def _pretty_print(result: ProbeResult) -> None:
    runtime_ms = result.runtime.total_seconds() * 1000
    status = "OK" if result.ok else "FAIL"
    suffix = " (timeout)" if result.timeout else ""
    print(f"[petze] {result.id}: {status} in {runtime_ms:.0f} ms{suffix}")
    for error in result.errors:
        reason = error_type_to_reason(error.type)
        comment = f" [{error.comment}]" if error.comment else ""
        print(f"- {error.type.value} ({reason}): {error.error}{comment}")
    sys.stdout.flush()


def _emit(result: ProbeResult, as_json: bool) -> None:
    if as_json:
        _print_json(result)
    else:
        _pretty_print(result)


def _services(urls: list[str], interval: float) -> list[Service]:
    return [Service(id=url, endpoint=url, interval=interval) for url in urls]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.interval is not None and args.interval <= 0:
        parser.error("--interval must be > 0")
    if args.count is not None and args.interval is None:
        parser.error("--count requires --interval")
    if args.count is not None and args.count <= 0:
        parser.error("--count must be > 0")

    settings: ProbeSettings = load_probe_settings()
    all_ok = True

    if args.interval is None:
        executor = ProbeExecutor(settings=settings)
        try:
            for service in _services(args.urls, 1.0):
                result = executor.run(service)
                all_ok = all_ok and result.ok
                _emit(result, args.json)
        finally:
            executor.close()
        return 0 if all_ok else 1

    seen = 0
    petze = Petze(_services(args.urls, args.interval), settings=settings)
    try:
        with petze:
            for result in petze.results():
                all_ok = all_ok and result.ok
                _emit(result, args.json)
                seen += 1
                if args.count is not None and seen >= args.count:
                    break
    except KeyboardInterrupt:
        pass
    return 0 if all_ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
