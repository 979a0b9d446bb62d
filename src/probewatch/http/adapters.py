# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Adapters that satisfy the ProbeExecutor protocol without a real transport."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import ErrorCategory
from ..probe.spec import ProbeSpec
from .client import ProbeExecutor
from .models import Executed, ExecutionFailed, HttpResponse, ProbeOutcome, StreamBody


@dataclass(frozen=True)
class StubReply:
    """Template for a response; each use produces a fresh single-read body."""

    status_code: int
    content: bytes = b""
    headers: tuple[tuple[str, str], ...] = ()
    chunk_size: int = 0
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    def materialize(self, spec: ProbeSpec) -> Executed:
        if self.chunk_size > 0:
            chunks = [self.content[i : i + self.chunk_size] for i in range(0, len(self.content), self.chunk_size)]
        else:
            chunks = [self.content]
        return Executed(
            HttpResponse(
                status_code=self.status_code,
                headers=httpx.Headers(list(self.headers)),
                body=StreamBody(chunks),
                url=spec.url,
                meta=dict(self.meta),
            )
        )


StubItem = Any


def _snapshot(item: StubItem) -> StubItem:
    if isinstance(item, HttpResponse):
        # Read the body once; the stub hands out a fresh copy on every call.
        raw = item.read()
        item.close()
        return StubReply(status_code=item.status_code, content=raw, headers=tuple(item.headers.multi_items()), meta=dict(item.meta))
    return item


def _as_reply(item: StubItem) -> StubReply | HttpResponse | ExecutionFailed | BaseException:
    if isinstance(item, (StubReply, ExecutionFailed, BaseException)):
        return item
    if isinstance(item, Executed):
        return item.response
    if isinstance(item, bool):
        raise TypeError(f"unsupported stub item: {item!r}")
    if isinstance(item, int):
        return StubReply(status_code=item)
    if isinstance(item, tuple) and item and isinstance(item[0], int):
        status = item[0]
        content = item[1] if len(item) > 1 else b""
        headers = item[2] if len(item) > 2 else ()
        raw = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        pairs = tuple(headers.items()) if isinstance(headers, dict) else tuple(headers)
        return StubReply(status_code=status, content=raw, headers=pairs)
    if isinstance(item, HttpResponse):
        return item
    raise TypeError(f"unsupported stub item: {item!r}")


class StubExecutor(ProbeExecutor):
    """
    Deterministic, programmable ProbeExecutor for tests.

    Items are consumed in order and the last one repeats once the queue is
    exhausted. Pass a list of items or a single item. An item may be a status
    code, a `(status, body[, headers])` tuple, an HttpResponse, a StubReply, an
    ExecutionFailed, an exception (reported as ExecutionFailed, or raised when
    `raise_exceptions=True`), or a callable taking the ProbeSpec and returning
    any of these.
    """

    def __init__(self, items: list[StubItem] | StubItem | None = None, *, raise_exceptions: bool = False):
        if items is None:
            items = []
        elif not isinstance(items, list):
            items = [items]
        self._items: list[StubItem] = [_snapshot(item) for item in items]
        self._position = 0
        self.raise_exceptions = raise_exceptions
        self.specs: list[ProbeSpec] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.specs)

    def add(self, *items: StubItem) -> None:
        self._items.extend(_snapshot(item) for item in items)

    def _next_item(self) -> StubItem:
        if not self._items:
            return ExecutionFailed(message="No stubbed outcome configured", category=ErrorCategory.CONNECTION_ERROR)
        index = min(self._position, len(self._items) - 1)
        self._position += 1
        return self._items[index]

    def execute(self, spec: ProbeSpec) -> ProbeOutcome:
        self.specs.append(spec)
        item = self._next_item()
        if callable(item) and not isinstance(item, (StubReply, BaseException)):
            item = item(spec)
        reply = _as_reply(item)
        if isinstance(reply, BaseException):
            if self.raise_exceptions:
                raise reply
            return ExecutionFailed.from_exception(reply)
        if isinstance(reply, ExecutionFailed):
            return reply
        if isinstance(reply, HttpResponse):
            return Executed(reply)
        return reply.materialize(spec)

    def close(self) -> None:
        self.closed = True


class CallableExecutor(ProbeExecutor):
    """Wrap a plain `(ProbeSpec) -> HttpResponse` transport function as an executor."""

    def __init__(self, send: Callable[[ProbeSpec], HttpResponse], close: Callable[[], None] | None = None):
        self._send = send
        self._close = close

    def execute(self, spec: ProbeSpec) -> ProbeOutcome:
        try:
            return Executed(self._send(spec))
        except Exception as exc:  # noqa: BLE001
            return ExecutionFailed.from_exception(exc)

    def close(self) -> None:
        if self._close is not None:
            self._close()


__all__ = ["CallableExecutor", "StubExecutor", "StubReply"]
