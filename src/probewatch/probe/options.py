# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Builder-style probe options.

Each `with_*` helper returns a ProbeOption; `build_probe_spec()` applies them in
order to a draft and freezes the result. All validation happens here, before any
network activity, and surfaces as ProbeConfigError.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..errors import ProbeConfigError
from .spec import DEFAULT_PORTS, ProbeSpec, freeze_pairs

_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_HEADER_NAME_RE = _METHOD_RE
_BODYLESS_METHODS = {"GET", "HEAD"}
_UNSET = object()


@dataclass
class ProbeDraft:
    """Mutable accumulator used only while options are being applied."""

    values: dict[str, Any] = field(default_factory=dict)
    headers: list[tuple[str, str]] = field(default_factory=list)
    query: list[tuple[str, str]] = field(default_factory=list)

    def set(self, name: str, value: Any) -> None:
        current = self.values.get(name, _UNSET)
        if current is not _UNSET and current != value:
            raise ProbeConfigError(f"conflicting values for {name}: {current!r} and {value!r}")
        self.values[name] = value


@dataclass(frozen=True)
class ProbeOption:
    name: str
    value: Any
    apply: Callable[[ProbeDraft, Any], None] = field(repr=False, compare=False)

    def __call__(self, draft: ProbeDraft) -> None:
        self.apply(draft, self.value)


def _scalar(name: str) -> Callable[[ProbeDraft, Any], None]:
    def apply(draft: ProbeDraft, value: Any) -> None:
        draft.set(name, value)

    return apply


def _append_header(draft: ProbeDraft, value: tuple[str, str]) -> None:
    draft.headers.append(value)


def _append_query(draft: ProbeDraft, value: tuple[str, str]) -> None:
    draft.query.append(value)


def with_host(host: str) -> ProbeOption:
    return ProbeOption("host", host, _scalar("host"))


def with_port(port: int) -> ProbeOption:
    return ProbeOption("port", port, _scalar("port"))


def with_scheme(scheme: str) -> ProbeOption:
    return ProbeOption("scheme", scheme, _scalar("scheme"))


def with_path(path: str) -> ProbeOption:
    return ProbeOption("path", path, _scalar("path"))


def with_method(method: str) -> ProbeOption:
    return ProbeOption("method", method, _scalar("method"))


def with_header(name: str, value: str) -> ProbeOption:
    """Add a request header; repeat to send several values for one name."""
    return ProbeOption("header", (name, value), _append_header)


def with_host_header(host: str) -> ProbeOption:
    """Override the Host header (virtual-host routing)."""
    return ProbeOption("host_header", host, _scalar("host_header"))


def with_query(name: str, value: str) -> ProbeOption:
    return ProbeOption("query", (name, value), _append_query)


def with_body(body: bytes | str) -> ProbeOption:
    return ProbeOption("body", body, _scalar("body"))


def with_timeout(seconds: float) -> ProbeOption:
    """Per-probe transport timeout; bounds a single cycle, not the assertion."""
    return ProbeOption("timeout", seconds, _scalar("timeout"))


def with_insecure(insecure: bool = True) -> ProbeOption:
    """Skip TLS certificate verification."""
    return ProbeOption("verify_ssl", not insecure, _scalar("verify_ssl"))


def with_follow_redirects(follow: bool = True) -> ProbeOption:
    return ProbeOption("follow_redirects", follow, _scalar("follow_redirects"))


def build_probe_spec(*options: ProbeOption | Iterable[ProbeOption]) -> ProbeSpec:
    """Apply options in order and return a validated, immutable ProbeSpec."""
    draft = ProbeDraft()
    for option in _flatten(options):
        if not isinstance(option, ProbeOption):
            raise ProbeConfigError(f"unrecognized probe option: {option!r}")
        option(draft)
    return _freeze(draft)


def ensure_probe_spec(spec_or_options: ProbeSpec | Iterable[ProbeOption]) -> ProbeSpec:
    """Accept a ready ProbeSpec or an iterable of options."""
    if isinstance(spec_or_options, ProbeSpec):
        return spec_or_options
    if isinstance(spec_or_options, ProbeOption):
        return build_probe_spec(spec_or_options)
    if isinstance(spec_or_options, (str, bytes)) or not isinstance(spec_or_options, Iterable):
        raise ProbeConfigError(f"expected a ProbeSpec or probe options, got {type(spec_or_options).__name__}")
    return build_probe_spec(*spec_or_options)


def _flatten(options: Iterable[Any]) -> Iterable[Any]:
    for option in options:
        if isinstance(option, (list, tuple)):
            yield from option
        else:
            yield option


def _freeze(draft: ProbeDraft) -> ProbeSpec:
    values = draft.values

    host = values.get("host")
    if not isinstance(host, str) or not host.strip():
        raise ProbeConfigError("probe host is required")
    host = host.strip()
    if "/" in host or "://" in host or any(ch.isspace() for ch in host):
        raise ProbeConfigError(f"probe host must be a bare hostname or address, got {host!r}")

    scheme = str(values.get("scheme", "http")).lower()
    if scheme not in DEFAULT_PORTS:
        raise ProbeConfigError(f"unsupported scheme {scheme!r}")

    port = values.get("port")
    if port is not None:
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
            raise ProbeConfigError(f"probe port must be an integer in 1..65535, got {port!r}")

    path = str(values.get("path", "/")) or "/"
    if not path.startswith("/"):
        path = f"/{path}"

    method = str(values.get("method", "GET")).upper()
    if not _METHOD_RE.match(method):
        raise ProbeConfigError(f"invalid HTTP method {method!r}")

    for name, _ in draft.headers:
        if not _HEADER_NAME_RE.match(name):
            raise ProbeConfigError(f"invalid header name {name!r}")

    host_header = values.get("host_header")
    injected_hosts = {value for name, value in draft.headers if name.lower() == "host"}
    if len(injected_hosts) > 1:
        raise ProbeConfigError(f"conflicting Host headers: {sorted(injected_hosts)}")
    if host_header is not None:
        if not str(host_header).strip():
            raise ProbeConfigError("host header override must not be empty")
        if injected_hosts and injected_hosts != {host_header}:
            raise ProbeConfigError(f"Host header {injected_hosts.pop()!r} conflicts with host header override {host_header!r}")

    body = values.get("body")
    if isinstance(body, str):
        body = body.encode("utf-8")
    elif body is not None and not isinstance(body, bytes):
        raise ProbeConfigError(f"probe body must be bytes or str, got {type(body).__name__}")
    if body is not None and method in _BODYLESS_METHODS:
        raise ProbeConfigError(f"{method} probes cannot carry a request body")

    timeout = values.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not math.isfinite(timeout) or timeout <= 0:
            raise ProbeConfigError(f"probe timeout must be a positive number, got {timeout!r}")

    return ProbeSpec(
        host=host,
        port=port,
        scheme=scheme,
        path=path,
        method=method,
        headers=freeze_pairs(draft.headers),
        host_header=host_header,
        query=freeze_pairs(draft.query),
        body=body,
        timeout=float(timeout) if timeout is not None else None,
        verify_ssl=values.get("verify_ssl"),
        follow_redirects=values.get("follow_redirects"),
    )


__all__ = [
    "ProbeDraft",
    "ProbeOption",
    "build_probe_spec",
    "ensure_probe_spec",
    "with_body",
    "with_follow_redirects",
    "with_header",
    "with_host",
    "with_host_header",
    "with_insecure",
    "with_method",
    "with_path",
    "with_port",
    "with_query",
    "with_scheme",
    "with_timeout",
]
