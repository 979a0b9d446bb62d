# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Polling schedulers.

Both schedulers drive the same cycle primitive (probe, buffer, check) one cycle at a
time on the caller's thread. They differ only in what ends a run:

- EventualScheduler retries execution failures and mismatches until the goal is met
  or the deadline passes.
- SustainedScheduler treats the first bad cycle inside the window as fatal.

Cancellation is checked before each cycle and wakes the inter-cycle pause; an
in-flight probe is always allowed to finish.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..config import TimingPolicy
from ..errors import (
    AssertionCancelled,
    DeadlineExceeded,
    ErrorCategory,
    SustainedViolation,
    categorize_exception,
)
from ..expect.matchers import Check, describe_expectation, evaluate
from ..http.buffer import ResponseBuffer
from ..http.client import ProbeExecutor
from ..http.models import Executed, ExecutionFailed
from ..probe.spec import ProbeSpec
from ..utils.cancel import CancellationToken
from .models import CycleResult, EventualState, SustainedResult, SustainedState

logger = logging.getLogger(__name__)

Goal = Callable[[CycleResult], bool]


def response_matches(result: CycleResult) -> bool:
    return result.matched


def execution_fails(result: CycleResult) -> bool:
    return not result.executed


def run_cycle(
    executor: ProbeExecutor,
    spec: ProbeSpec,
    check: Check | None,
    buffer: ResponseBuffer,
    *,
    attempt: int,
) -> CycleResult:
    """
    Execute one probe, buffer its body and evaluate `check` against it.

    An executor that raises counts as an execution failure, and so does a body that
    cannot be read. With `check=None` the response is buffered but not judged.
    """
    label = describe_expectation(check) if check is not None else ""
    try:
        outcome = executor.execute(spec)
    except Exception as exc:  # noqa: BLE001
        outcome = ExecutionFailed.from_exception(exc)

    if not isinstance(outcome, Executed):
        return CycleResult(attempt=attempt, outcome=outcome, expectation=label)

    try:
        cached, response = buffer.capture(outcome.response)
    except Exception as exc:  # noqa: BLE001
        category = categorize_exception(exc)
        if category is ErrorCategory.UNKNOWN_ERROR:
            category = ErrorCategory.BODY_READ_ERROR
        return CycleResult(attempt=attempt, outcome=ExecutionFailed.from_exception(exc, category), expectation=label)

    verdict = evaluate(check, response, label) if check is not None else None
    return CycleResult(attempt=attempt, outcome=Executed(response), verdict=verdict, body=cached, expectation=label)


class PollingScheduler:
    """Shared plumbing: clock, pauses, cancellation and cycle bookkeeping."""

    def __init__(
        self,
        executor: ProbeExecutor,
        *,
        buffer: ResponseBuffer | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
    ):
        self.executor = executor
        self.buffer = buffer or ResponseBuffer()
        self._clock = clock
        self._sleep = sleep

    def _cycle(self, spec: ProbeSpec, check: Check | None, attempt: int, start: float) -> CycleResult:
        cycle_start = self._clock()
        result = run_cycle(self.executor, spec, check, self.buffer, attempt=attempt)
        result.started_at = cycle_start - start
        result.duration = self._clock() - cycle_start
        return result

    def _pause(self, seconds: float, cancel: CancellationToken | None) -> None:
        if seconds <= 0:
            return
        if self._sleep is not None:
            self._sleep(seconds)
        elif cancel is not None:
            cancel.wait(seconds)
        else:
            time.sleep(seconds)

    @staticmethod
    def _cancelled(cancel: CancellationToken | None, last: CycleResult | None, attempts: int) -> AssertionCancelled:
        reason = cancel.reason if cancel is not None else None
        message = f"assertion cancelled after {attempts} attempt(s)"
        if reason:
            message = f"{message}: {reason}"
        return AssertionCancelled(message, last_cycle=last, attempts=attempts, reason=reason)


class EventualScheduler(PollingScheduler):
    """Running -> Succeeded | TimedOut (| Cancelled)."""

    state: EventualState = EventualState.RUNNING

    def run(
        self,
        spec: ProbeSpec,
        check: Check | None,
        policy: TimingPolicy,
        *,
        cancel: CancellationToken | None = None,
        goal: Goal = response_matches,
        description: str = "failed to get expected response",
    ) -> CycleResult:
        """
        Cycle until `goal` accepts a result; return that result.

        The first cycle starts immediately. Later cycles start at least
        `policy.interval` after the previous one started. When no further cycle
        can start within `policy.deadline` (including when a slow cycle has
        already run past it), the run waits out any remaining deadline and
        raises DeadlineExceeded with the last cycle attached.
        """
        self.state = EventualState.RUNNING
        start = self._clock()
        attempt = 0
        last: CycleResult | None = None

        while True:
            if cancel is not None and cancel.cancelled:
                self.state = EventualState.CANCELLED
                logger.info("Eventual assertion on %s cancelled after %d attempt(s)", spec.describe(), attempt)
                raise self._cancelled(cancel, last, attempt)

            attempt += 1
            result = self._cycle(spec, check, attempt, start)
            if goal(result):
                self.state = EventualState.SUCCEEDED
                if result.body is not None and result.response is not None:
                    self.buffer.rehydrate(result.response, result.body)
                logger.debug("Eventual assertion on %s succeeded on attempt %d", spec.describe(), attempt)
                return result

            last = result
            logger.debug("Eventual assertion on %s not yet satisfied: %s", spec.describe(), result.describe())

            now = self._clock()
            next_start = start + result.started_at + policy.interval
            if max(now, next_start) - start > policy.deadline:
                self._pause(policy.deadline - (now - start), cancel)
                if cancel is not None and cancel.cancelled:
                    self.state = EventualState.CANCELLED
                    raise self._cancelled(cancel, last, attempt)
                elapsed = self._clock() - start
                self.state = EventualState.TIMED_OUT
                logger.info("Eventual assertion on %s timed out after %d attempt(s) (%s)", spec.describe(), attempt, policy)
                raise DeadlineExceeded(
                    f"{description} within {policy.deadline:g}s ({attempt} attempt(s), {spec.describe()})",
                    last_cycle=last,
                    attempts=attempt,
                    elapsed=elapsed,
                )
            self._pause(next_start - now, cancel)


class SustainedScheduler(PollingScheduler):
    """Running -> Sustained | Violated (| Cancelled)."""

    state: SustainedState = SustainedState.RUNNING

    def run(
        self,
        spec: ProbeSpec,
        check: Check,
        policy: TimingPolicy,
        *,
        cancel: CancellationToken | None = None,
    ) -> SustainedResult:
        """
        Require every cycle in the window `policy.deadline` to match.

        Cycles start every `policy.interval` while their start offset is inside
        the window, so a clean run takes ceil(window / interval) cycles. A cycle
        that finishes past the window end is the last one. The first
        execution failure or mismatch raises SustainedViolation immediately.
        """
        self.state = SustainedState.RUNNING
        start = self._clock()
        attempt = 0
        last: CycleResult | None = None

        while True:
            if cancel is not None and cancel.cancelled:
                self.state = SustainedState.CANCELLED
                logger.info("Sustained assertion on %s cancelled after %d cycle(s)", spec.describe(), attempt)
                raise self._cancelled(cancel, last, attempt)

            attempt += 1
            result = self._cycle(spec, check, attempt, start)
            if not result.matched:
                self.state = SustainedState.VIOLATED
                elapsed = self._clock() - start
                logger.info("Sustained assertion on %s violated on cycle %d: %s", spec.describe(), attempt, result.describe())
                raise SustainedViolation(
                    f"response did not stay as expected: cycle {attempt} failed after {elapsed:.2f}s ({spec.describe()})",
                    last_cycle=result,
                    cycle_index=attempt,
                    elapsed=elapsed,
                )
            if result.response is not None:
                result.response.close()
            last = result

            now = self._clock()
            next_offset = result.started_at + policy.interval
            if max(now - start, next_offset) >= policy.deadline:
                self.state = SustainedState.SUSTAINED
                elapsed = now - start
                logger.debug("Sustained assertion on %s held for %d cycle(s)", spec.describe(), attempt)
                return SustainedResult(cycles=attempt, elapsed=elapsed, last_cycle=last)
            self._pause(start + next_offset - now, cancel)


__all__ = [
    "EventualScheduler",
    "PollingScheduler",
    "SustainedScheduler",
    "execution_fails",
    "response_matches",
    "run_cycle",
]
