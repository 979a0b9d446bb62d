# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import socket

import httpx
import pytest

from probewatch import config
from probewatch.assertions.models import CycleResult
from probewatch.config import DEFAULT_USER_AGENT, TimingPolicy
from probewatch.errors import (
    AssertionCancelled,
    AssertionFailure,
    DeadlineExceeded,
    ErrorCategory,
    ProbeConfigError,
    SustainedViolation,
    categorize_exception,
    error_category_to_reason,
)
from probewatch.http.models import ExecutionFailed


def test_http_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("PROBEWATCH_HTTP_TIMEOUT", "2.5")
    monkeypatch.setenv("PROBEWATCH_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("PROBEWATCH_HTTP_REDIRECTS", "yes")
    monkeypatch.setenv("PROBEWATCH_HTTP_VERIFY_SSL", "0")
    monkeypatch.setenv("PROBEWATCH_HTTP_MAX_BODY_BYTES", "1024")
    monkeypatch.setenv("PROBEWATCH_LOG_BODY_BYTES", "64")

    settings = config.load_http_settings()

    assert settings.timeout == 2.5
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.allow_redirects is True
    assert settings.verify_ssl is False
    assert settings.max_body_bytes == 1024
    assert settings.log_body_bytes == 64


def test_http_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("PROBEWATCH_HTTP_TIMEOUT", "not-a-number")
    monkeypatch.setenv("PROBEWATCH_HTTP_MAX_BODY_BYTES", "-5")
    monkeypatch.setenv("PROBEWATCH_LOG_BODY_BYTES", "many")

    settings = config.load_http_settings()

    assert settings.timeout == config.HttpSettings.timeout
    assert settings.max_body_bytes == config.HttpSettings.max_body_bytes
    assert settings.log_body_bytes == config.HttpSettings.log_body_bytes
    assert settings.user_agent.startswith("ProbeWatch/")
    assert DEFAULT_USER_AGENT == config.HttpSettings.user_agent


def test_timing_settings_env_and_policies(monkeypatch):
    monkeypatch.setenv("PROBEWATCH_EVENTUAL_TIMEOUT", "60")
    monkeypatch.setenv("PROBEWATCH_EVENTUAL_INTERVAL", "2")
    monkeypatch.setenv("PROBEWATCH_SUSTAINED_WINDOW", "0")
    monkeypatch.setenv("PROBEWATCH_SUSTAINED_INTERVAL", "0.5")

    timing = config.load_timing_settings()

    assert timing.eventual_policy() == TimingPolicy(deadline=60.0, interval=2.0)
    # non-positive values fall back to the default window
    assert timing.sustained_policy() == TimingPolicy(deadline=config.TimingSettings.sustained_window, interval=0.5)


def test_load_timing_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("PROBEWATCH_EVENTUAL_TIMEOUT", "7")
    assert config.load_timing_settings().eventual_timeout == 7.0
    monkeypatch.setenv("PROBEWATCH_EVENTUAL_TIMEOUT", "8")
    assert config.load_timing_settings().eventual_timeout == 8.0


def test_default_policies_are_distinct():
    timing = config.TimingSettings()
    eventual = timing.eventual_policy()
    sustained = timing.sustained_policy()
    assert eventual.deadline > sustained.deadline
    assert sustained.interval <= eventual.interval


@pytest.mark.parametrize(
    "deadline, interval",
    [(5, 0), (5, -1), (-1, 1), (float("nan"), 1), (5, float("inf")), ("5", 1), (True, 1)],
)
def test_timing_policy_rejects_invalid_values(deadline, interval):
    with pytest.raises(ProbeConfigError):
        TimingPolicy(deadline=deadline, interval=interval)


def test_timing_policy_short_deadline_degrades_to_single_attempt():
    policy = TimingPolicy(deadline=0.5, interval=1.0)
    assert policy.single_attempt is True
    assert TimingPolicy.of(10).interval == 1.0
    assert TimingPolicy.of(10, 0.25) == TimingPolicy(deadline=10, interval=0.25)
    assert str(TimingPolicy(3, 1)) == "deadline=3s interval=1s"


def test_config_error_is_value_error():
    assert issubclass(ProbeConfigError, ValueError)
    assert issubclass(AssertionFailure, AssertionError)
    assert not issubclass(AssertionCancelled, AssertionError)


def test_categorize_exception_variants():
    assert categorize_exception(httpx.ReadTimeout("slow")) is ErrorCategory.TIMEOUT
    assert categorize_exception(httpx.ConnectError("refused")) is ErrorCategory.CONNECTION_ERROR
    assert categorize_exception(socket.gaierror("no such host")) is ErrorCategory.DNS_ERROR
    assert categorize_exception(ConnectionRefusedError()) is ErrorCategory.CONNECTION_ERROR
    assert categorize_exception(ValueError("odd")) is ErrorCategory.UNKNOWN_ERROR


def test_categorize_exception_prefers_wrapped_cause():
    try:
        try:
            raise socket.gaierror("name resolution failed")
        except socket.gaierror as inner:
            raise httpx.ConnectError("wrapped") from inner
    except httpx.ConnectError as exc:
        assert categorize_exception(exc) is ErrorCategory.DNS_ERROR


def test_error_category_to_reason():
    assert error_category_to_reason(ErrorCategory.TIMEOUT) == "Network timeout during probe"
    assert error_category_to_reason(None) == ""


def test_assertion_failures_carry_last_cycle_detail():
    cycle = CycleResult(attempt=3, outcome=ExecutionFailed(message="ConnectError: refused", category=ErrorCategory.CONNECTION_ERROR))

    timeout = DeadlineExceeded("no luck", last_cycle=cycle, attempts=3, elapsed=5.0)
    assert timeout.attempts == 3
    assert timeout.summary == "no luck"
    assert "attempt 3" in str(timeout)
    assert "ConnectError: refused" in str(timeout)

    violation = SustainedViolation("broke", last_cycle=cycle, cycle_index=2)
    assert violation.cycle_index == 2
    assert violation.last_cycle is cycle

    cancelled = AssertionCancelled("stopped", attempts=1, reason="ctrl-c")
    assert str(cancelled) == "stopped"
    assert cancelled.reason == "ctrl-c"
