# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Text helpers for diagnostic output."""

from __future__ import annotations

TRUNCATION_SUFFIX = "...[truncated]"


def truncate_text_bytes(text: str, max_bytes: int) -> str:
    """Return `text` cut to at most `max_bytes` UTF-8 bytes, marking the cut."""
    raw = text.encode("utf-8")
    if max_bytes < 0 or len(raw) <= max_bytes:
        return text
    suffix_bytes = TRUNCATION_SUFFIX.encode("utf-8")
    keep = max_bytes - len(suffix_bytes)
    if keep <= 0:
        return suffix_bytes[:max_bytes].decode("utf-8", errors="ignore")
    prefix = raw[:keep].decode("utf-8", errors="ignore")
    return prefix + TRUNCATION_SUFFIX


def decode_body(content: bytes, encoding: str | None = None) -> str:
    """Decode a response body for display, never raising."""
    try:
        return content.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


__all__ = ["TRUNCATION_SUFFIX", "decode_body", "truncate_text_bytes"]
