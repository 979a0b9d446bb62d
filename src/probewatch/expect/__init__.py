# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Expectation capability used by the assertion schedulers."""

from .matchers import (
    Check,
    Expectation,
    ExpectedResponse,
    PredicateExpectation,
    Verdict,
    describe_expectation,
    evaluate,
    expectation,
)

__all__ = [
    "Check",
    "Expectation",
    "ExpectedResponse",
    "PredicateExpectation",
    "Verdict",
    "describe_expectation",
    "evaluate",
    "expectation",
]
