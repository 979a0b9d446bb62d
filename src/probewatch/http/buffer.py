# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Response buffering.

A probe's body is a single-read stream, but both the expectation check and the
caller need to read it. The buffer reads it once into an owned byte string and
hands out fresh in-memory views, so whoever reads next always starts at byte 0
and sees exactly the bytes the expectation saw.
"""

from __future__ import annotations

import io
import logging
from contextlib import suppress

from ..config import HttpSettings
from ..utils.context import get_http_settings
from ..utils.text import decode_body, truncate_text_bytes
from .models import HttpResponse

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024


class CachedBody:
    """Owned copy of a response body; `open()` returns an independent read view."""

    __slots__ = ("_content",)

    def __init__(self, content: bytes):
        self._content = bytes(content)

    @property
    def content(self) -> bytes:
        return self._content

    def open(self) -> io.BytesIO:
        return io.BytesIO(self._content)

    def __len__(self) -> int:
        return len(self._content)


class ResponseBuffer:
    """Capture a response body exactly once and rehydrate it on demand."""

    def __init__(self, settings: HttpSettings | None = None, *, max_body_bytes: int | None = None, log_body_bytes: int | None = None):
        settings = settings or get_http_settings()
        self.max_body_bytes = max_body_bytes if max_body_bytes is not None else settings.max_body_bytes
        self.log_body_bytes = log_body_bytes if log_body_bytes is not None else settings.log_body_bytes

    def capture(self, response: HttpResponse) -> tuple[CachedBody, HttpResponse]:
        """
        Read the body fully, close the original stream and swap in a fresh view.

        Read errors propagate; the original body is closed either way.
        """
        original = response.body
        try:
            content, truncated = self._read_all(original)
        finally:
            with suppress(Exception):
                original.close()

        cached = CachedBody(content)
        response.body = cached.open()
        response.meta["body_bytes_read"] = len(content)
        response.meta["body_truncated"] = truncated
        self._log(response, cached)
        return cached, response

    def rehydrate(self, response: HttpResponse, cached: CachedBody) -> HttpResponse:
        """Replace whatever is left of the body with a fresh, unread view."""
        with suppress(Exception):
            response.body.close()
        response.body = cached.open()
        return response

    def _read_all(self, body) -> tuple[bytes, bool]:  # noqa: ANN001
        limit = self.max_body_bytes if self.max_body_bytes and self.max_body_bytes > 0 else None
        content = bytearray()
        while True:
            want = READ_CHUNK_BYTES if limit is None else min(READ_CHUNK_BYTES, limit - len(content) + 1)
            chunk = body.read(want)
            if not chunk:
                return bytes(content), False
            content.extend(chunk)
            if limit is not None and len(content) > limit:
                del content[limit:]
                return bytes(content), True

    def _log(self, response: HttpResponse, cached: CachedBody) -> None:
        try:
            text = truncate_text_bytes(decode_body(cached.content, response.encoding), self.log_body_bytes)
            logger.info("Probe response: status=%s, body=%s", response.status_code, text)
        except Exception:  # noqa: BLE001
            logger.debug("Could not log probe response body", exc_info=True)


__all__ = ["CachedBody", "ResponseBuffer"]
