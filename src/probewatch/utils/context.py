# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-assertion ambient context.

This module provides a ContextVar-backed AssertionContext that carries common
plumbing (probe executor, settings, cancellation token, per-probe timeout).
Assertion helpers read from this context when explicit arguments are omitted.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from ..config import HttpSettings, TimingSettings, load_http_settings, load_timing_settings
from ..errors import ProbeConfigError
from .cancel import CancellationToken

if TYPE_CHECKING:
    from ..http.client import ProbeExecutor


@dataclass(frozen=True)
class AssertionContext:
    timeout: float | None = None
    executor: ProbeExecutor | None = None
    http_settings: HttpSettings | None = None
    timing_settings: TimingSettings | None = None
    cancel: CancellationToken | None = None


_current_context: ContextVar[AssertionContext | None] = ContextVar("probewatch_assertion_context", default=None)


def get_assertion_context() -> AssertionContext:
    """Return the current ambient assertion context."""
    return _current_context.get() or AssertionContext()


def get_http_settings() -> HttpSettings:
    """Return HttpSettings from context, falling back to loading defaults."""
    context = get_assertion_context()
    if context.http_settings is not None:
        return context.http_settings
    return load_http_settings()


def get_timing_settings() -> TimingSettings:
    """Return TimingSettings from context, falling back to loading defaults."""
    context = get_assertion_context()
    if context.timing_settings is not None:
        return context.timing_settings
    return load_timing_settings()


def get_executor() -> ProbeExecutor:
    """Return the ambient ProbeExecutor."""
    context = get_assertion_context()
    if context.executor is None:
        raise ProbeConfigError("No ProbeExecutor configured; pass executor=... or wrap the call in assertion_context(executor=...)")
    return context.executor


def get_cancel_token() -> CancellationToken | None:
    return get_assertion_context().cancel


@contextmanager
def assertion_context(**overrides: Any) -> Iterator[AssertionContext]:
    """
    Context manager that layers overrides onto the ambient AssertionContext.

    None-valued overrides are ignored to preserve outer context values.
    """
    current = get_assertion_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    new_context = replace(current, **filtered) if filtered else current
    token = _current_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_context.reset(token)


__all__ = [
    "AssertionContext",
    "assertion_context",
    "get_assertion_context",
    "get_cancel_token",
    "get_executor",
    "get_http_settings",
    "get_timing_settings",
]
