# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""ProbeWatch CLI."""

from __future__ import annotations

import argparse
import json
import signal
import sys
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from ..assertions.models import CycleResult
from ..config import HttpSettings, TimingPolicy, load_http_settings, load_timing_settings
from ..errors import AssertionCancelled, AssertionFailure, ProbeConfigError, SustainedViolation
from ..expect import ExpectedResponse
from ..http import create_default_executor
from ..log import setup_logging
from ..probe import (
    ProbeOption,
    with_header,
    with_host,
    with_host_header,
    with_insecure,
    with_method,
    with_path,
    with_port,
    with_query,
    with_scheme,
)
from ..runtime import ProbeWatch
from ..utils.cancel import CancellationToken
from ..utils.text import truncate_text_bytes

CLI_TEXT_TRUNCATION_BYTES = 4096
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ProbeWatch: assert that a live endpoint eventually (and consistently) responds as expected")
    parser.add_argument("url", help="Target URL, e.g. http://gateway:8080/get")
    parser.add_argument("--method", default="GET", help="HTTP method (default: GET)")
    parser.add_argument("--host-header", help="Override the Host header (virtual-host routing)")
    parser.add_argument("--header", action="append", default=[], metavar="NAME:VALUE", help="Extra request header; repeatable")
    parser.add_argument("--status", type=int, help="Expected status code")
    parser.add_argument("--body-contains", action="append", default=[], metavar="TEXT", help="Expected body substring; repeatable")
    parser.add_argument("--timeout", type=float, help="Eventual-success deadline in seconds")
    parser.add_argument("--interval", type=float, help="Eventual-success polling interval in seconds")
    parser.add_argument("--consistently", action="store_true", help="After success, require the response to hold for a window")
    parser.add_argument("--window", type=float, help="Sustained-success window in seconds")
    parser.add_argument("--sustained-interval", type=float, help="Sustained-success polling interval in seconds")
    parser.add_argument("--unreachable", action="store_true", help="Assert the target eventually stops answering")
    parser.add_argument("--ignore-ssl-errors", "--insecure", dest="insecure", action="store_true", help="Skip TLS verification")
    parser.add_argument("--json", action="store_true", help="Output JSON instead of a human-friendly summary")
    parser.add_argument("--log-level", help="Logging level (default: PROBEWATCH_LOG_LEVEL or WARNING)")
    return parser


def probe_options_from_args(args: argparse.Namespace) -> list[ProbeOption]:
    """Translate CLI arguments into probe options; malformed input raises ProbeConfigError."""
    parts = urlsplit(args.url)
    if not parts.scheme or not parts.hostname:
        raise ProbeConfigError(f"target URL must include scheme and host, got {args.url!r}")
    try:
        port = parts.port
    except ValueError as exc:
        raise ProbeConfigError(f"invalid port in {args.url!r}") from exc

    options: list[ProbeOption] = [
        with_scheme(parts.scheme),
        with_host(parts.hostname),
        with_path(parts.path or "/"),
        with_method(args.method),
    ]
    if port is not None:
        options.append(with_port(port))
    for name, value in parse_qsl(parts.query, keep_blank_values=True):
        options.append(with_query(name, value))
    if args.host_header:
        options.append(with_host_header(args.host_header))
    for raw in args.header:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ProbeConfigError(f"header must look like NAME:VALUE, got {raw!r}")
        options.append(with_header(name.strip(), value.strip()))
    if args.insecure:
        options.append(with_insecure())
    return options


def _policy(timeout: float | None, interval: float | None, default: TimingPolicy) -> TimingPolicy | None:
    if timeout is None and interval is None:
        return None
    return TimingPolicy(
        deadline=timeout if timeout is not None else default.deadline,
        interval=interval if interval is not None else default.interval,
    )


def _cycle_payload(cycle: CycleResult | None) -> dict[str, Any] | None:
    if cycle is None:
        return None
    return {
        "attempt": cycle.attempt,
        "status": cycle.status.value,
        "status_code": cycle.response.status_code if cycle.response is not None else None,
        "detail": truncate_text_bytes(cycle.describe(), CLI_TEXT_TRUNCATION_BYTES),
    }


def _emit(payload: dict[str, Any], as_json: bool) -> None:
    if as_json:
        json.dump(payload, sys.stdout, indent=2, sort_keys=True)
        sys.stdout.write("\n")
        return
    print(f"[ProbeWatch] {payload['result']}: {payload['message']}")
    last = payload.get("last_cycle")
    if last:
        print(f"Last attempt: {last['detail']}")


def run(args: argparse.Namespace, *, settings: HttpSettings | None = None, watch: ProbeWatch | None = None, cancel: CancellationToken | None = None) -> int:
    settings = settings or load_http_settings()
    timing = load_timing_settings()
    try:
        options = probe_options_from_args(args)
        eventual = _policy(args.timeout, args.interval, timing.eventual_policy())
        sustained = _policy(args.window, args.sustained_interval, timing.sustained_policy())
        expected = ExpectedResponse(status_code=args.status, body_contains=args.body_contains or None)
    except ProbeConfigError as exc:
        _emit({"result": "config-error", "message": str(exc)}, args.json)
        return EXIT_CONFIG

    if watch is None:
        watch = ProbeWatch(create_default_executor(settings), http_settings=settings, timing_settings=timing)
    try:
        with watch:
            if args.unreachable:
                failure = watch.eventually_unreachable(options, eventual, cancel=cancel)
                payload = {"result": "ok", "message": f"target unreachable ({failure.category.value}: {failure.message})"}
            elif args.consistently:
                report = watch.eventually_consistently(options, expected, eventual, sustained, cancel=cancel)
                payload = {
                    "result": "ok",
                    "message": f"{expected.description} held for {report.cycles} cycle(s)",
                    "cycles": report.cycles,
                }
            else:
                response = watch.eventually_response(options, expected, eventual, cancel=cancel)
                with response:
                    payload = {"result": "ok", "message": f"got {expected.description}", "status_code": response.status_code}
    except ProbeConfigError as exc:
        _emit({"result": "config-error", "message": str(exc)}, args.json)
        return EXIT_CONFIG
    except AssertionCancelled as exc:
        _emit({"result": "cancelled", "message": exc.summary, "last_cycle": _cycle_payload(exc.last_cycle)}, args.json)
        return EXIT_FAILED
    except AssertionFailure as exc:
        result = "violated" if isinstance(exc, SustainedViolation) else "timeout"
        _emit({"result": result, "message": exc.summary, "last_cycle": _cycle_payload(exc.last_cycle)}, args.json)
        return EXIT_FAILED

    _emit(payload, args.json)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings: HttpSettings = load_http_settings()
    if args.insecure:
        settings.verify_ssl = False

    cancel = CancellationToken()
    previous = signal.signal(signal.SIGINT, lambda _signum, _frame: cancel.cancel("interrupted"))
    try:
        return run(args, settings=settings, cancel=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)


if __name__ == "__main__":
    raise SystemExit(main())
