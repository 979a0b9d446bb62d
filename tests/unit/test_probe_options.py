# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import dataclasses

import pytest

from probewatch.errors import ProbeConfigError
from probewatch.probe import (
    ProbeSpec,
    build_probe_spec,
    ensure_probe_spec,
    with_body,
    with_follow_redirects,
    with_header,
    with_host,
    with_host_header,
    with_insecure,
    with_method,
    with_path,
    with_port,
    with_query,
    with_scheme,
    with_timeout,
)


def test_build_probe_spec_defaults():
    spec = build_probe_spec(with_host("gw.default.svc"))
    assert spec.method == "GET"
    assert spec.path == "/"
    assert spec.url == "http://gw.default.svc:80/"
    assert spec.headers == ()
    assert spec.timeout is None


def test_build_probe_spec_full_options():
    spec = build_probe_spec(
        with_host("gw.default.svc"),
        with_port(8080),
        with_path("get"),
        with_method("post"),
        with_body("payload"),
        with_host_header("www.example.com"),
        with_header("x-user-id", "u1"),
        with_header("X-User-Id", "u2"),
        with_query("q", "a b"),
        with_timeout(2),
        with_follow_redirects(),
    )
    assert spec.url == "http://gw.default.svc:8080/get?q=a+b"
    assert spec.method == "POST"
    assert spec.body == b"payload"
    assert spec.header_values("x-user-id") == ["u1", "u2"]
    assert spec.request_headers() == [("Host", "www.example.com"), ("x-user-id", "u1"), ("X-User-Id", "u2")]
    assert spec.timeout == 2.0
    assert spec.follow_redirects is True
    assert spec.describe() == "POST http://gw.default.svc:8080/get?q=a+b (Host: www.example.com)"


def test_https_and_ipv6_urls():
    spec = build_probe_spec(with_scheme("HTTPS"), with_host("::1"), with_insecure())
    assert spec.url == "https://[::1]:443/"
    assert spec.verify_ssl is False


def test_probe_spec_is_immutable():
    spec = build_probe_spec(with_host("localhost"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.host = "elsewhere"  # type: ignore[misc]


def test_options_accept_lists_and_build_classmethod():
    options = [with_host("localhost"), with_port(9000)]
    assert build_probe_spec(options) == ProbeSpec.build(*options)
    assert ensure_probe_spec(options).port == 9000
    spec = build_probe_spec(with_host("localhost"))
    assert ensure_probe_spec(spec) is spec


def test_repeating_scalar_with_same_value_is_allowed():
    spec = build_probe_spec(with_host("a"), with_port(80), with_port(80))
    assert spec.port == 80


@pytest.mark.parametrize(
    "options",
    [
        [],
        [with_host("")],
        [with_host("http://gw")],
        [with_host("gw"), with_port(0)],
        [with_host("gw"), with_port(70000)],
        [with_host("gw"), with_port("80")],
        [with_host("gw"), with_scheme("ftp")],
        [with_host("gw"), with_method("GE T")],
        [with_host("gw"), with_header("bad name", "x")],
        [with_host("gw"), with_timeout(0)],
        [with_host("gw"), with_body(b"x")],
        [with_host("gw"), with_method("HEAD"), with_body("x")],
        [with_host("gw"), with_port(80), with_port(81)],
        [with_host("gw"), with_host_header("a.example"), with_host_header("b.example")],
        [with_host("gw"), with_header("Host", "a.example"), with_host_header("b.example")],
        [with_host("gw"), with_header("Host", "a.example"), with_header("host", "b.example")],
        [with_host("gw"), with_host_header("  ")],
    ],
)
def test_invalid_or_conflicting_options_raise(options):
    with pytest.raises(ProbeConfigError):
        build_probe_spec(*options)


def test_unrecognized_option_raises():
    with pytest.raises(ProbeConfigError, match="unrecognized probe option"):
        build_probe_spec(with_host("gw"), {"port": 80})
    with pytest.raises(ProbeConfigError):
        ensure_probe_spec("http://gw")


def test_matching_host_header_and_override_are_not_a_conflict():
    spec = build_probe_spec(with_host("gw"), with_header("Host", "a.example"), with_host_header("a.example"))
    assert spec.request_headers() == [("Host", "a.example")]
