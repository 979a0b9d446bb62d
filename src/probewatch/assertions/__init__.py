# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Eventually / consistently assertions over live probes."""

from ..config import TimingPolicy
from .api import (
    assert_consistent_response,
    assert_eventual_error,
    assert_eventual_response,
    assert_eventual_return_response,
    assert_eventually_consistent_response,
)
from .models import CycleResult, CycleStatus, EventualState, SustainedResult, SustainedState
from .scheduler import EventualScheduler, PollingScheduler, SustainedScheduler, run_cycle

__all__ = [
    "CycleResult",
    "CycleStatus",
    "EventualScheduler",
    "EventualState",
    "PollingScheduler",
    "SustainedResult",
    "SustainedScheduler",
    "SustainedState",
    "TimingPolicy",
    "assert_consistent_response",
    "assert_eventual_error",
    "assert_eventual_response",
    "assert_eventual_return_response",
    "assert_eventually_consistent_response",
    "run_cycle",
]
