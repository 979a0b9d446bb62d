# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json

import pytest

from probewatch.cli.main import EXIT_CONFIG, EXIT_FAILED, EXIT_OK, build_parser, probe_options_from_args, run
from probewatch.config import HttpSettings, TimingPolicy, TimingSettings
from probewatch.errors import ErrorCategory, ProbeConfigError
from probewatch.expect import ExpectedResponse
from probewatch.http import ExecutionFailed, StubExecutor
from probewatch.probe import build_probe_spec
from probewatch.runtime import ProbeWatch
from probewatch.utils.cancel import CancellationToken

REFUSED = ExecutionFailed(message="ConnectError: connection refused", category=ErrorCategory.CONNECTION_ERROR)
FAST = ["--timeout", "0.5", "--interval", "0.01"]


def _watch(executor):
    return ProbeWatch(executor, http_settings=HttpSettings(), timing_settings=TimingSettings())


def _run_json(capsys, argv, executor, cancel=None):
    args = build_parser().parse_args([*argv, "--json"])
    code = run(args, settings=HttpSettings(), watch=_watch(executor), cancel=cancel)
    return code, json.loads(capsys.readouterr().out)


def test_probe_options_from_url_and_flags():
    args = build_parser().parse_args(
        ["http://gw.local:8080/get?x=1", "--host-header", "api.example.com", "--header", "X-Env: prod", "--insecure"]
    )
    spec = build_probe_spec(*probe_options_from_args(args))

    assert spec.url == "http://gw.local:8080/get?x=1"
    assert spec.host_header == "api.example.com"
    assert spec.header_values("x-env") == ["prod"]
    assert spec.verify_ssl is False
    assert spec.method == "GET"


@pytest.mark.parametrize(
    "argv",
    [
        ["gw.local/get"],
        ["http://gw.local:99999/"],
        ["http://gw.local/", "--header", "no-colon"],
    ],
)
def test_probe_options_reject_malformed_input(argv):
    with pytest.raises(ProbeConfigError):
        probe_options_from_args(build_parser().parse_args(argv))


def test_run_reports_eventual_success(capsys):
    executor = StubExecutor([503, (200, "ok")])
    code, payload = _run_json(capsys, ["http://gw.local/", "--status", "200", *FAST], executor)

    assert code == EXIT_OK
    assert payload["result"] == "ok"
    assert payload["status_code"] == 200
    assert executor.calls == 2
    assert executor.closed is True


def test_run_reports_timeout_with_last_attempt(capsys):
    executor = StubExecutor((503, "no healthy upstream"))
    code, payload = _run_json(capsys, ["http://gw.local/", "--status", "200", "--timeout", "0.05", "--interval", "0.01"], executor)

    assert code == EXIT_FAILED
    assert payload["result"] == "timeout"
    assert payload["last_cycle"]["status_code"] == 503
    assert payload["last_cycle"]["status"] == "MISMATCHED"
    assert "no healthy upstream" in payload["last_cycle"]["detail"]


def test_run_consistently_counts_cycles(capsys):
    executor = StubExecutor(200)
    argv = ["http://gw.local/", "--status", "200", "--consistently", "--window", "0.05", "--sustained-interval", "0.05", *FAST]
    code, payload = _run_json(capsys, argv, executor)

    assert code == EXIT_OK
    assert payload["cycles"] == 1
    assert executor.calls == 2


def test_run_consistently_reports_violation(capsys):
    executor = StubExecutor([200, 500])
    argv = ["http://gw.local/", "--status", "200", "--consistently", "--window", "1", "--sustained-interval", "0.01", *FAST]
    code, payload = _run_json(capsys, argv, executor)

    assert code == EXIT_FAILED
    assert payload["result"] == "violated"
    assert payload["last_cycle"]["status_code"] == 500


def test_run_unreachable(capsys):
    code, payload = _run_json(capsys, ["http://gw.local/", "--unreachable", *FAST], StubExecutor([200, REFUSED]))

    assert code == EXIT_OK
    assert "connection refused" in payload["message"]


def test_run_config_error_sends_nothing(capsys):
    executor = StubExecutor(200)
    code, payload = _run_json(capsys, ["http://gw.local/", "--timeout", "-1"], executor)

    assert code == EXIT_CONFIG
    assert payload["result"] == "config-error"
    assert executor.calls == 0


def test_run_cancelled(capsys):
    token = CancellationToken()
    token.cancel("interrupted")
    executor = StubExecutor(200)
    code, payload = _run_json(capsys, ["http://gw.local/", *FAST], executor, cancel=token)

    assert code == EXIT_FAILED
    assert payload["result"] == "cancelled"
    assert executor.calls == 0


def test_run_human_output(capsys):
    args = build_parser().parse_args(["http://gw.local/", "--status", "200", *FAST])
    code = run(args, settings=HttpSettings(), watch=_watch(StubExecutor(200)))

    assert code == EXIT_OK
    assert capsys.readouterr().out.startswith("[ProbeWatch] ok: got status 200")


def test_probewatch_facade_shares_executor_and_closes_it():
    executor = StubExecutor([500, 200])
    with _watch(executor) as watch:
        response = watch.eventually_response(
            [*probe_options_from_args(build_parser().parse_args(["http://gw.local/"]))],
            ExpectedResponse(status_code=200),
            TimingPolicy(deadline=0.5, interval=0.01),
        )
        response.close()
        result = watch.consistently(
            probe_options_from_args(build_parser().parse_args(["http://gw.local/"])),
            ExpectedResponse(status_code=200),
            TimingPolicy(deadline=0.01, interval=0.01),
        )

    assert result.cycles == 1
    assert executor.calls == 3
    assert executor.closed is True
