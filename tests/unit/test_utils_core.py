# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading
import time

from probewatch.utils import CancellationToken, decode_body, truncate_text_bytes
from probewatch.utils.context import assertion_context, get_assertion_context, get_cancel_token


def test_truncate_text_bytes_marks_the_cut():
    assert truncate_text_bytes("short", 20) == "short"
    assert truncate_text_bytes("a" * 100, 20) == "a" * 6 + "...[truncated]"
    # Never splits a multi-byte character.
    assert truncate_text_bytes("é" * 10, 17) == "é...[truncated]"


def test_decode_body_tolerates_bad_input():
    assert decode_body("héllo".encode("latin-1"), "latin-1") == "héllo"
    assert decode_body(b"ok", "no-such-codec") == "ok"
    assert "�" in decode_body(b"\xff\xfe ok")


def test_cancellation_token_is_one_way():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel("first")
    token.cancel("second")
    assert token.cancelled
    assert token.reason == "first"
    assert "cancelled" in repr(token)


def test_cancel_from_another_thread_wakes_wait():
    token = CancellationToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    started = time.monotonic()
    try:
        assert token.wait(10) is True
    finally:
        timer.cancel()
    assert time.monotonic() - started < 5


def test_assertion_context_layers_and_restores():
    token = CancellationToken()
    assert get_cancel_token() is None
    with assertion_context(cancel=token, timeout=2.0):
        with assertion_context(timeout=None, executor=None):
            assert get_assertion_context().timeout == 2.0
            assert get_cancel_token() is token
    assert get_assertion_context().timeout is None
