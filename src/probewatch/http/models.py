# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP response and probe outcome models."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

import httpx

from ..errors import ErrorCategory, categorize_exception, error_category_to_reason


class ResponseBody(Protocol):
    """Readable, closable byte stream; in general it can be read only once."""

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


class StreamBody:
    """Single-read body over an iterator of chunks (e.g. an httpx streaming response)."""

    def __init__(self, chunks: Iterable[bytes], on_close: Callable[[], None] | None = None):
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending = b""
        self._exhausted = False
        self._on_close = on_close
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("read from closed response body")
        if size is None or size < 0:
            parts = [self._pending]
            self._pending = b""
            parts.extend(chunk for chunk in self._chunks if chunk)
            self._exhausted = True
            return b"".join(parts)

        while len(self._pending) < size and not self._exhausted:
            chunk = next(self._chunks, None)
            if chunk is None:
                self._exhausted = True
                break
            self._pending += chunk
        data, self._pending = self._pending[:size], self._pending[size:]
        return data

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()


def _coerce_headers(headers: Any) -> httpx.Headers:
    if isinstance(headers, httpx.Headers):
        return headers
    if not headers:
        return httpx.Headers()
    if isinstance(headers, Mapping):
        return httpx.Headers({str(key): "" if value is None else str(value) for key, value in headers.items() if key is not None})
    return httpx.Headers([(str(key), str(value)) for key, value in headers])


@dataclass
class HttpResponse:
    """
    Response obtained by one probe.

    `headers` is multi-valued and case-insensitive. `body` is a stream; once an
    expectation or the caller has read it, it is gone unless the Response Buffer
    rehydrated it.
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: ResponseBody = field(default_factory=io.BytesIO)
    url: str | None = None
    encoding: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = _coerce_headers(self.headers)

    @classmethod
    def from_bytes(
        cls,
        status_code: int,
        content: bytes | str = b"",
        *,
        headers: Any = None,
        url: str | None = None,
    ) -> HttpResponse:
        """Build a response over an in-memory body (stubs, tests, adapters)."""
        raw = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        return cls(status_code=status_code, headers=_coerce_headers(headers), body=io.BytesIO(raw), url=url)

    def read(self) -> bytes:
        return self.body.read()

    def close(self) -> None:
        self.body.close()

    def __enter__(self) -> HttpResponse:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


@dataclass(frozen=True)
class Executed:
    """The probe obtained a response."""

    response: HttpResponse

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ExecutionFailed:
    """The probe could not be dispatched or produced no response."""

    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: BaseException, category: ErrorCategory | None = None) -> ExecutionFailed:
        resolved = category or categorize_exception(exc)
        message = str(exc) or error_category_to_reason(resolved) or type(exc).__name__
        return cls(message=f"{type(exc).__name__}: {message}", category=resolved, cause=exc)

    @property
    def reason(self) -> str:
        return error_category_to_reason(self.category)


ProbeOutcome = Union[Executed, ExecutionFailed]


__all__ = [
    "Executed",
    "ExecutionFailed",
    "HttpResponse",
    "ProbeOutcome",
    "ResponseBody",
    "StreamBody",
]
