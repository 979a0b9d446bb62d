# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Expectations over probe responses.

Schedulers only see `(HttpResponse) -> Verdict`; anything callable with that shape
works, including plain predicates wrapped by `expectation()`. `ExpectedResponse` is
the stock matcher for status, headers and body.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from ..http.headers import has_header, header_values
from ..http.models import HttpResponse
from ..utils.text import decode_body, truncate_text_bytes

DESCRIPTION_BODY_BYTES = 256


@dataclass(frozen=True)
class Verdict:
    passed: bool
    description: str = ""

    def __bool__(self) -> bool:
        return self.passed


class Expectation(Protocol):
    description: str

    def __call__(self, response: HttpResponse) -> Verdict: ...


CheckResult = Union[Verdict, bool, tuple[bool, str]]
Check = Callable[[HttpResponse], CheckResult]


def describe_expectation(check: Any) -> str:
    description = getattr(check, "description", None)
    if isinstance(description, str) and description:
        return description
    name = getattr(check, "__name__", None)
    return name if name else repr(check)


def evaluate(check: Check, response: HttpResponse, description: str | None = None) -> Verdict:
    """Run `check` and normalise its result; an exception is a failed verdict."""
    label = description or describe_expectation(check)
    try:
        result = check(response)
    except Exception as exc:  # noqa: BLE001
        return Verdict(False, f"expectation {label} raised {type(exc).__name__}: {exc}")

    if isinstance(result, Verdict):
        return result
    if isinstance(result, tuple) and len(result) == 2:
        passed, detail = result
        return Verdict(bool(passed), str(detail or ""))
    passed = bool(result)
    return Verdict(passed, "" if passed else f"response did not satisfy {label}")


@dataclass(frozen=True)
class PredicateExpectation:
    predicate: Callable[[HttpResponse], Any] = field(repr=False)
    description: str = ""

    def __call__(self, response: HttpResponse) -> Verdict:
        return evaluate(self.predicate, response, self.description)


def expectation(predicate: Callable[[HttpResponse], Any], description: str | None = None) -> PredicateExpectation:
    """Wrap a plain predicate (bool, (bool, str) or Verdict result) as an Expectation."""
    return PredicateExpectation(predicate=predicate, description=description or describe_expectation(predicate))


HeaderExpectation = Union[str, "re.Pattern[str]", None]


@dataclass(frozen=True)
class ExpectedResponse:
    """
    Expected response shape.

    Unset fields are not checked. Header expectations map a name to an exact value,
    a compiled regex searched in each value, or None for presence only. `body` must
    match exactly; `body_contains` takes one substring or several; `body_pattern` is
    searched in the decoded body. Every mismatch is reported, not just the first.
    """

    status_code: int | None = None
    headers: Mapping[str, HeaderExpectation] | None = None
    absent_headers: Sequence[str] = ()
    body: bytes | str | None = None
    body_contains: str | bytes | Sequence[str | bytes] | None = None
    body_pattern: str | re.Pattern[str] | None = None

    @property
    def description(self) -> str:
        parts: list[str] = []
        if self.status_code is not None:
            parts.append(f"status {self.status_code}")
        for name, expected in (self.headers or {}).items():
            if expected is None:
                parts.append(f"header {name} present")
            elif isinstance(expected, re.Pattern):
                parts.append(f"header {name} matching /{expected.pattern}/")
            else:
                parts.append(f"header {name}: {expected}")
        for name in self.absent_headers:
            parts.append(f"header {name} absent")
        if self.body is not None:
            parts.append(f"body {self.body!r}")
        for needle in _needles(self.body_contains):
            parts.append(f"body containing {needle!r}")
        if self.body_pattern is not None:
            pattern = self.body_pattern.pattern if isinstance(self.body_pattern, re.Pattern) else self.body_pattern
            parts.append(f"body matching /{pattern}/")
        return ", ".join(parts) if parts else "any response"

    def __call__(self, response: HttpResponse) -> Verdict:
        mismatches: list[str] = []

        if self.status_code is not None and response.status_code != self.status_code:
            mismatches.append(f"expected status {self.status_code}, got {response.status_code}")

        for name, expected in (self.headers or {}).items():
            values = header_values(response.headers, name)
            if not values:
                mismatches.append(f"expected header {name!r}, but it was absent")
            elif isinstance(expected, re.Pattern):
                if not any(expected.search(value) for value in values):
                    mismatches.append(f"expected header {name!r} to match /{expected.pattern}/, got {values}")
            elif expected is not None and str(expected) not in values:
                mismatches.append(f"expected header {name!r} to be {expected!r}, got {values}")

        for name in self.absent_headers:
            if has_header(response.headers, name):
                mismatches.append(f"expected header {name!r} to be absent, got {header_values(response.headers, name)}")

        if self._checks_body:
            raw = response.read()
            text = decode_body(raw, response.encoding)
            mismatches.extend(self._body_mismatches(raw, text))

        if mismatches:
            return Verdict(False, "; ".join(mismatches))
        return Verdict(True, self.description)

    @property
    def _checks_body(self) -> bool:
        return self.body is not None or self.body_contains is not None or self.body_pattern is not None

    def _body_mismatches(self, raw: bytes, text: str) -> list[str]:
        mismatches: list[str] = []
        shown = truncate_text_bytes(text, DESCRIPTION_BODY_BYTES)
        if self.body is not None:
            matched = raw == self.body if isinstance(self.body, bytes) else text == self.body
            if not matched:
                mismatches.append(f"expected body {self.body!r}, got {shown!r}")
        for needle in _needles(self.body_contains):
            found = needle in raw if isinstance(needle, bytes) else needle in text
            if not found:
                mismatches.append(f"expected body to contain {needle!r}, got {shown!r}")
        if self.body_pattern is not None:
            pattern = self.body_pattern if isinstance(self.body_pattern, re.Pattern) else re.compile(self.body_pattern)
            if not pattern.search(text):
                mismatches.append(f"expected body to match /{pattern.pattern}/, got {shown!r}")
        return mismatches


def _needles(value: str | bytes | Sequence[str | bytes] | None) -> list[str | bytes]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value]
    return list(value)


__all__ = [
    "Check",
    "CheckResult",
    "Expectation",
    "ExpectedResponse",
    "PredicateExpectation",
    "Verdict",
    "describe_expectation",
    "evaluate",
    "expectation",
]
