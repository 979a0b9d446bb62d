# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Immutable probe description shared by every cycle of an assertion."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import quote, urlencode

HeaderPairs = tuple[tuple[str, str], ...]

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProbeSpec:
    """Request to issue against the target; built once, never mutated during retries."""

    host: str
    port: int | None = None
    scheme: str = "http"
    path: str = "/"
    method: str = "GET"
    headers: HeaderPairs = ()
    host_header: str | None = None
    query: HeaderPairs = ()
    body: bytes | None = None
    timeout: float | None = None
    verify_ssl: bool | None = None
    follow_redirects: bool | None = None

    @classmethod
    def build(cls, *options: object) -> ProbeSpec:
        from .options import build_probe_spec

        return build_probe_spec(*options)

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else DEFAULT_PORTS[self.scheme]

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host and not self.host.startswith("[") else self.host
        path = quote(self.path, safe="/%:@!$&'()*+,;=-._~")
        url = f"{self.scheme}://{host}:{self.effective_port}{path}"
        if self.query:
            url = f"{url}?{urlencode(list(self.query))}"
        return url

    def header_values(self, name: str) -> list[str]:
        lower = name.lower()
        return [value for key, value in self.headers if key.lower() == lower]

    def request_headers(self) -> list[tuple[str, str]]:
        """Ordered (name, value) pairs to send, with the Host override first when set."""
        pairs: list[tuple[str, str]] = []
        if self.host_header:
            pairs.append(("Host", self.host_header))
        pairs.extend((key, value) for key, value in self.headers if not (self.host_header and key.lower() == "host"))
        return pairs

    def describe(self) -> str:
        suffix = f" (Host: {self.host_header})" if self.host_header else ""
        return f"{self.method} {self.url}{suffix}"


def freeze_pairs(pairs: Iterable[tuple[str, str]]) -> HeaderPairs:
    return tuple((str(key), str(value)) for key, value in pairs)


__all__ = ["DEFAULT_PORTS", "HeaderPairs", "ProbeSpec", "freeze_pairs"]
