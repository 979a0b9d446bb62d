# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
ProbeWatch package entrypoint.

ProbeWatch asserts the externally observable behaviour of services that converge
asynchronously (gateways whose routing state propagates with delay, deployments
that are still starting). It repeats a probe until the response matches an
expectation within a deadline, and can then require the match to hold for a
following window. Probe transport is abstracted behind an injectable executor and
expectations are plain callables returning a Verdict.
"""

from .assertions import (
    CycleResult,
    SustainedResult,
    assert_consistent_response,
    assert_eventual_error,
    assert_eventual_response,
    assert_eventual_return_response,
    assert_eventually_consistent_response,
)
from .config import HttpSettings, TimingPolicy, TimingSettings, load_http_settings, load_timing_settings
from .errors import (
    AssertionCancelled,
    AssertionFailure,
    DeadlineExceeded,
    ProbeConfigError,
    ProbeWatchError,
    SustainedViolation,
)
from .expect import ExpectedResponse, Verdict, expectation
from .http import (
    Executed,
    ExecutionFailed,
    HttpResponse,
    HttpxExecutor,
    ProbeExecutor,
    ResponseBuffer,
    StubExecutor,
    create_default_executor,
)
from .log import setup_logging
from .probe import ProbeSpec, build_probe_spec
from .runtime import ProbeWatch
from .utils.cancel import CancellationToken
from .utils.context import assertion_context
from .version import __version__

__all__ = [
    "AssertionCancelled",
    "AssertionFailure",
    "CancellationToken",
    "CycleResult",
    "DeadlineExceeded",
    "Executed",
    "ExecutionFailed",
    "ExpectedResponse",
    "HttpResponse",
    "HttpSettings",
    "HttpxExecutor",
    "ProbeConfigError",
    "ProbeExecutor",
    "ProbeSpec",
    "ProbeWatch",
    "ProbeWatchError",
    "ResponseBuffer",
    "StubExecutor",
    "SustainedResult",
    "SustainedViolation",
    "TimingPolicy",
    "TimingSettings",
    "Verdict",
    "assert_consistent_response",
    "assert_eventual_error",
    "assert_eventual_response",
    "assert_eventual_return_response",
    "assert_eventually_consistent_response",
    "assertion_context",
    "build_probe_spec",
    "create_default_executor",
    "expectation",
    "load_http_settings",
    "load_timing_settings",
    "setup_logging",
    "__version__",
]
