# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level ProbeWatch facade for eventual/sustained assertions."""

from __future__ import annotations

from contextlib import suppress

from .assertions import (
    SustainedResult,
    assert_consistent_response,
    assert_eventual_error,
    assert_eventual_response,
    assert_eventual_return_response,
    assert_eventually_consistent_response,
)
from .assertions.api import ProbeInput
from .config import HttpSettings, TimingPolicy, TimingSettings, load_http_settings, load_timing_settings
from .expect import Check
from .http.client import ProbeExecutor, create_default_executor
from .http.models import ExecutionFailed, HttpResponse
from .utils.cancel import CancellationToken
from .utils.context import assertion_context


class ProbeWatch:
    """
    Convenience wrapper that shares one executor and one set of defaults across assertions.

    Every call runs inside an assertion_context() carrying this instance's executor,
    settings and (optional) cancellation token, so nested helpers see the same plumbing.
    """

    def __init__(
        self,
        executor: ProbeExecutor | None = None,
        *,
        http_settings: HttpSettings | None = None,
        timing_settings: TimingSettings | None = None,
        cancel: CancellationToken | None = None,
    ):
        self.http_settings = http_settings or load_http_settings()
        self.timing_settings = timing_settings or load_timing_settings()
        self.executor = executor or create_default_executor(self.http_settings)
        self.cancel = cancel

    def _context(self, cancel: CancellationToken | None):
        return assertion_context(
            executor=self.executor,
            http_settings=self.http_settings,
            timing_settings=self.timing_settings,
            cancel=cancel or self.cancel,
        )

    def eventually(
        self,
        probe: ProbeInput,
        expected: Check,
        policy: TimingPolicy | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        with self._context(cancel):
            assert_eventual_response(probe, expected, policy)

    def eventually_response(
        self,
        probe: ProbeInput,
        expected: Check,
        policy: TimingPolicy | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> HttpResponse:
        """Like eventually(), but hand the matching response (unread body) to the caller."""
        with self._context(cancel):
            return assert_eventual_return_response(probe, expected, policy)

    def consistently(
        self,
        probe: ProbeInput,
        expected: Check,
        policy: TimingPolicy | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> SustainedResult:
        with self._context(cancel):
            return assert_consistent_response(probe, expected, policy)

    def eventually_consistently(
        self,
        probe: ProbeInput,
        expected: Check,
        eventual_policy: TimingPolicy | None = None,
        sustained_policy: TimingPolicy | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> SustainedResult:
        with self._context(cancel):
            return assert_eventually_consistent_response(probe, expected, eventual_policy, sustained_policy)

    def eventually_unreachable(
        self,
        probe: ProbeInput,
        policy: TimingPolicy | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExecutionFailed:
        with self._context(cancel):
            return assert_eventual_error(probe, policy)

    def close(self) -> None:
        with suppress(Exception):
            if hasattr(self.executor, "close"):
                self.executor.close()

    def __enter__(self) -> ProbeWatch:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()
