# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header lookup utilities.

HTTP header field names are case-insensitive (RFC 9110) and a name may carry several
values. Responses expose httpx.Headers, but expectations and adapters also hand us
plain dicts or lists of pairs, so lookups go through these helpers.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx


def _header_pairs(headers: Any) -> list[tuple[str, str]]:
    if not headers:
        return []
    if isinstance(headers, httpx.Headers):
        return list(headers.multi_items())
    if isinstance(headers, Mapping):
        return [(str(key), "" if value is None else str(value)) for key, value in headers.items() if key is not None]
    pairs: list[tuple[str, str]] = []
    for item in headers:
        try:
            key, value = item
        except (TypeError, ValueError):
            continue
        if key is None:
            continue
        pairs.append((str(key), "" if value is None else str(value)))
    return pairs


def header_values(headers: Any, name: str) -> list[str]:
    """Return every value for `name`, matching case-insensitively, in wire order."""
    if not name:
        return []
    lower = name.lower()
    return [value.strip() for key, value in _header_pairs(headers) if key.lower() == lower]


def header_value(headers: Any, name: str, default: str = "") -> str:
    """Return the first value for `name`, or `default` when absent."""
    values = header_values(headers, name)
    return values[0] if values else default


def has_header(headers: Any, name: str) -> bool:
    lower = (name or "").lower()
    return any(key.lower() == lower for key, _ in _header_pairs(headers))


def normalize_headers(headers: Any) -> dict[str, str]:
    """Return a lowercase-keyed copy; repeated names are joined with ', '."""
    out: dict[str, str] = {}
    for key, value in _header_pairs(headers):
        name = key.strip().lower()
        if not name:
            continue
        out[name] = f"{out[name]}, {value}" if name in out else value
    return out


__all__ = ["has_header", "header_value", "header_values", "normalize_headers"]
