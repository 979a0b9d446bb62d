# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe executor abstraction and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ..config import HttpSettings, load_http_settings
from .models import ProbeOutcome

if TYPE_CHECKING:
    from ..probe.spec import ProbeSpec


class ProbeExecutor(Protocol):
    """
    Performs one request/response exchange.

    Implementations must bound each call with their own timeout, must not mutate the
    spec, and report transport problems as ExecutionFailed rather than raising.
    """

    def execute(self, spec: ProbeSpec) -> ProbeOutcome: ...

    def close(self) -> None:  # pragma: no cover - optional for adapters
        ...


def create_default_executor(settings: HttpSettings | None = None) -> ProbeExecutor:
    """Factory for the default httpx-backed executor."""
    from .httpx_client import HttpxExecutor

    return HttpxExecutor(settings or load_http_settings())
