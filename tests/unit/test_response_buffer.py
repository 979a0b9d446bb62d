# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging

import pytest

from probewatch.config import HttpSettings
from probewatch.http.buffer import CachedBody, ResponseBuffer
from probewatch.http.models import HttpResponse, StreamBody


def _streaming_response(content: bytes, chunk: int = 4):
    closed = []
    chunks = [content[i : i + chunk] for i in range(0, len(content), chunk)] or [b""]
    body = StreamBody(chunks, on_close=lambda: closed.append(True))
    return HttpResponse(status_code=200, body=body), closed


def test_capture_reads_once_and_swaps_in_fresh_view():
    response, closed = _streaming_response(b"hello gateway")
    buffer = ResponseBuffer(HttpSettings())

    cached, restored = buffer.capture(response)

    assert restored is response
    assert cached.content == b"hello gateway"
    assert closed == [True]
    assert restored.read() == b"hello gateway"
    assert restored.meta["body_bytes_read"] == len(b"hello gateway")
    assert restored.meta["body_truncated"] is False


@pytest.mark.parametrize("consumed", [0, 1, 5, 13])
def test_rehydrate_returns_bytes_the_check_observed(consumed):
    response, _ = _streaming_response(b"hello gateway")
    buffer = ResponseBuffer(HttpSettings())
    cached, restored = buffer.capture(response)

    observed = restored.body.read(consumed)
    buffer.rehydrate(restored, cached)

    assert restored.read() == b"hello gateway"
    assert b"hello gateway".startswith(observed)


def test_capture_truncates_at_max_body_bytes():
    response, closed = _streaming_response(b"x" * 100, chunk=7)
    buffer = ResponseBuffer(max_body_bytes=10, log_body_bytes=0)

    cached, restored = buffer.capture(response)

    assert len(cached) == 10
    assert restored.meta["body_truncated"] is True
    assert closed == [True]


def test_capture_exact_limit_is_not_truncated():
    response, _ = _streaming_response(b"y" * 10, chunk=3)
    cached, restored = ResponseBuffer(max_body_bytes=10).capture(response)
    assert cached.content == b"y" * 10
    assert restored.meta["body_truncated"] is False


def test_capture_propagates_read_errors_and_closes_original():
    class BrokenBody:
        def __init__(self):
            self.closed = False

        def read(self, size=-1):  # noqa: ARG002
            raise OSError("connection reset mid-body")

        def close(self):
            self.closed = True

    body = BrokenBody()
    with pytest.raises(OSError):
        ResponseBuffer(HttpSettings()).capture(HttpResponse(status_code=200, body=body))
    assert body.closed is True


def test_capture_logs_status_and_truncated_body(caplog):
    response, _ = _streaming_response("payload-ü".encode() * 10)
    buffer = ResponseBuffer(HttpSettings(log_body_bytes=24))

    with caplog.at_level(logging.INFO, logger="probewatch.http.buffer"):
        buffer.capture(response)

    message = caplog.records[-1].getMessage()
    assert "status=200" in message
    assert "payload-ü" in message
    assert "[truncated]" in message


def test_logging_failure_does_not_break_capture(monkeypatch):
    def explode(*_args, **_kwargs):
        raise RuntimeError("log sink down")

    monkeypatch.setattr("probewatch.http.buffer.truncate_text_bytes", explode)
    response, _ = _streaming_response(b"still fine")

    cached, restored = ResponseBuffer(HttpSettings()).capture(response)

    assert cached.content == b"still fine"
    assert restored.read() == b"still fine"


def test_cached_body_views_are_independent():
    cached = CachedBody(b"abc")
    first = cached.open()
    second = cached.open()
    assert first.read(2) == b"ab"
    assert second.read() == b"abc"
    assert first.read() == b"c"
