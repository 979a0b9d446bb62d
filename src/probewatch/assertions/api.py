# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Assertion entry points.

Every call validates its probe options and timing policy before the first probe, then
hands off to a scheduler. Executor, cancellation token and default timing come from
explicit arguments first, then from the ambient assertion_context().
"""

from __future__ import annotations

from collections.abc import Iterable

from ..config import TimingPolicy
from ..errors import ProbeConfigError
from ..expect.matchers import Check
from ..http.buffer import ResponseBuffer
from ..http.client import ProbeExecutor
from ..http.models import ExecutionFailed, HttpResponse
from ..probe.options import ProbeOption, ensure_probe_spec
from ..probe.spec import ProbeSpec
from ..utils.cancel import CancellationToken
from ..utils.context import get_cancel_token, get_executor, get_http_settings, get_timing_settings
from .models import SustainedResult, resolve_policy
from .scheduler import EventualScheduler, SustainedScheduler, execution_fails

ProbeInput = ProbeSpec | Iterable[ProbeOption]


def _resolve_executor(executor: ProbeExecutor | None) -> ProbeExecutor:
    return executor if executor is not None else get_executor()


def _resolve_cancel(cancel: CancellationToken | None) -> CancellationToken | None:
    return cancel if cancel is not None else get_cancel_token()


def _require_check(expected: Check) -> Check:
    if expected is None or not callable(expected):
        raise ProbeConfigError(f"expected response must be callable (e.g. ExpectedResponse), got {expected!r}")
    return expected


def _buffer() -> ResponseBuffer:
    return ResponseBuffer(get_http_settings())


def assert_eventual_return_response(
    probe: ProbeInput,
    expected: Check,
    policy: TimingPolicy | None = None,
    *,
    executor: ProbeExecutor | None = None,
    cancel: CancellationToken | None = None,
) -> HttpResponse:
    """
    Probe until the response satisfies `expected`; return that response.

    The returned body is unread and holds exactly the bytes the expectation saw.
    The caller owns the response and should close it.
    """
    spec = ensure_probe_spec(probe)
    check = _require_check(expected)
    timing = resolve_policy(policy, get_timing_settings().eventual_policy())
    scheduler = EventualScheduler(_resolve_executor(executor), buffer=_buffer())
    return scheduler.run(spec, check, timing, cancel=_resolve_cancel(cancel)).response


def assert_eventual_response(
    probe: ProbeInput,
    expected: Check,
    policy: TimingPolicy | None = None,
    *,
    executor: ProbeExecutor | None = None,
    cancel: CancellationToken | None = None,
) -> None:
    """Probe until the response satisfies `expected`."""
    response = assert_eventual_return_response(probe, expected, policy, executor=executor, cancel=cancel)
    response.close()


def assert_consistent_response(
    probe: ProbeInput,
    expected: Check,
    policy: TimingPolicy | None = None,
    *,
    executor: ProbeExecutor | None = None,
    cancel: CancellationToken | None = None,
) -> SustainedResult:
    """Require every cycle in the window to satisfy `expected`; the first miss is fatal."""
    spec = ensure_probe_spec(probe)
    check = _require_check(expected)
    timing = resolve_policy(policy, get_timing_settings().sustained_policy())
    scheduler = SustainedScheduler(_resolve_executor(executor), buffer=_buffer())
    return scheduler.run(spec, check, timing, cancel=_resolve_cancel(cancel))


def assert_eventually_consistent_response(
    probe: ProbeInput,
    expected: Check,
    eventual_policy: TimingPolicy | None = None,
    sustained_policy: TimingPolicy | None = None,
    *,
    executor: ProbeExecutor | None = None,
    cancel: CancellationToken | None = None,
) -> SustainedResult:
    """
    Wait for `expected` to hold, then require it to keep holding.

    The two phases take independent policies; each falls back to its own default.
    """
    spec = ensure_probe_spec(probe)
    check = _require_check(expected)
    settings = get_timing_settings()
    eventual = resolve_policy(eventual_policy, settings.eventual_policy())
    sustained = resolve_policy(sustained_policy, settings.sustained_policy())
    resolved_executor = _resolve_executor(executor)
    resolved_cancel = _resolve_cancel(cancel)
    buffer = _buffer()

    result = EventualScheduler(resolved_executor, buffer=buffer).run(spec, check, eventual, cancel=resolved_cancel)
    if result.response is not None:
        result.response.close()
    return SustainedScheduler(resolved_executor, buffer=buffer).run(spec, check, sustained, cancel=resolved_cancel)


def assert_eventual_error(
    probe: ProbeInput,
    policy: TimingPolicy | None = None,
    *,
    executor: ProbeExecutor | None = None,
    cancel: CancellationToken | None = None,
) -> ExecutionFailed:
    """
    Probe until a request fails to execute (e.g. connection refused); return that failure.

    A probe that obtains any response is the retryable condition here.
    """
    spec = ensure_probe_spec(probe)
    timing = resolve_policy(policy, get_timing_settings().eventual_policy())
    scheduler = EventualScheduler(_resolve_executor(executor), buffer=_buffer())
    result = scheduler.run(
        spec,
        None,
        timing,
        cancel=_resolve_cancel(cancel),
        goal=execution_fails,
        description="expected probe to fail, but it kept getting responses",
    )
    return result.failure


__all__ = [
    "ProbeInput",
    "assert_consistent_response",
    "assert_eventual_error",
    "assert_eventual_response",
    "assert_eventual_return_response",
    "assert_eventually_consistent_response",
]
