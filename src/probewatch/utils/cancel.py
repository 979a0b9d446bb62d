# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Cooperative cancellation token observed between assertion cycles."""

from __future__ import annotations

import threading


class CancellationToken:
    """
    Thread-safe, one-way cancellation flag.

    Schedulers check `cancelled` before each cycle and sleep through `wait()` so a
    cancel issued from another thread (or a signal handler) ends the inter-cycle
    pause immediately. An in-flight probe is never interrupted.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; return True if cancelled while (or before) waiting."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)

    def __repr__(self) -> str:
        state = f"cancelled reason={self._reason!r}" if self.cancelled else "active"
        return f"<CancellationToken {state}>"


__all__ = ["CancellationToken"]
