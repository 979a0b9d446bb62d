# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-cycle records and scheduler states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..config import TimingPolicy
from ..errors import ProbeConfigError
from ..expect.matchers import Verdict
from ..http.buffer import CachedBody
from ..http.models import Executed, ExecutionFailed, HttpResponse, ProbeOutcome
from ..utils.text import decode_body, truncate_text_bytes

DIAGNOSTIC_BODY_BYTES = 512


class CycleStatus(str, Enum):
    MATCHED = "MATCHED"
    MISMATCHED = "MISMATCHED"
    EXECUTION_FAILED = "EXECUTION_FAILED"


class EventualState(str, Enum):
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


class SustainedState(str, Enum):
    RUNNING = "RUNNING"
    SUSTAINED = "SUSTAINED"
    VIOLATED = "VIOLATED"
    CANCELLED = "CANCELLED"


@dataclass
class CycleResult:
    """One probe plus, if it executed, one expectation verdict."""

    attempt: int
    outcome: ProbeOutcome
    verdict: Verdict | None = None
    body: CachedBody | None = None
    expectation: str = ""
    started_at: float = 0.0
    duration: float = 0.0

    @property
    def status(self) -> CycleStatus:
        if not isinstance(self.outcome, Executed):
            return CycleStatus.EXECUTION_FAILED
        if self.verdict is not None and self.verdict.passed:
            return CycleStatus.MATCHED
        return CycleStatus.MISMATCHED

    @property
    def matched(self) -> bool:
        return self.status is CycleStatus.MATCHED

    @property
    def executed(self) -> bool:
        return isinstance(self.outcome, Executed)

    @property
    def response(self) -> HttpResponse | None:
        return self.outcome.response if isinstance(self.outcome, Executed) else None

    @property
    def failure(self) -> ExecutionFailed | None:
        return self.outcome if isinstance(self.outcome, ExecutionFailed) else None

    def describe(self) -> str:
        prefix = f"attempt {self.attempt} at +{self.started_at:.2f}s"
        failure = self.failure
        if failure is not None:
            return f"{prefix}: execution failed ({failure.category.value}): {failure.message}"

        response = self.response
        status = response.status_code if response is not None else None
        body = ""
        if self.body is not None:
            encoding = response.encoding if response is not None else None
            body = truncate_text_bytes(decode_body(self.body.content, encoding), DIAGNOSTIC_BODY_BYTES)
        detail = f"{prefix}: status={status}, body={body!r}"
        if response is not None and self.body is not None and response.meta.get("body_truncated"):
            detail = f"{detail} (body truncated at {len(self.body)} bytes)"
        if self.verdict is None:
            return detail
        if self.verdict.passed:
            return f"{detail}; matched {self.expectation or self.verdict.description}"
        mismatch = self.verdict.description or "expectation not satisfied"
        expected = f" (expected {self.expectation})" if self.expectation else ""
        return f"{detail}; mismatch: {mismatch}{expected}"


@dataclass(frozen=True)
class SustainedResult:
    cycles: int
    elapsed: float
    last_cycle: CycleResult | None = None


def resolve_policy(policy: TimingPolicy | None, default: TimingPolicy) -> TimingPolicy:
    """Return the per-call override when given, else the process-wide default."""
    if policy is None:
        return default
    if not isinstance(policy, TimingPolicy):
        raise ProbeConfigError(f"expected a TimingPolicy, got {type(policy).__name__}; use TimingPolicy.of(timeout, interval)")
    return policy


__all__ = [
    "CycleResult",
    "CycleStatus",
    "EventualState",
    "SustainedResult",
    "SustainedState",
    "resolve_policy",
]
