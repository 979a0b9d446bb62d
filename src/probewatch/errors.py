# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .assertions.models import CycleResult


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    BODY_READ_ERROR = "BODY_READ_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    # httpx wraps socket errors; look at the cause first so DNS/TLS failures keep their category.
    cause = exc.__cause__ or exc.__context__
    if isinstance(exc, httpx.TransportError) and cause is not None and cause is not exc:
        nested = categorize_exception(cause)
        if nested not in (ErrorCategory.UNKNOWN_ERROR, ErrorCategory.NONE):
            return nested

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ssl_module.SSLError, ssl_module.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, (socket.timeout, TimeoutError)):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout during probe",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.BODY_READ_ERROR: "Response body could not be read",
        ErrorCategory.UNKNOWN_ERROR: "Network error during probe",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Probe failed due to network error")


class ProbeWatchError(Exception):
    """Base class for ProbeWatch errors."""


class ProbeConfigError(ProbeWatchError, ValueError):
    """Malformed or conflicting probe options / timing policy. Never retried."""


class AssertionFailure(ProbeWatchError, AssertionError):
    """Terminal assertion failure carrying the most recent cycle for diagnostics."""

    def __init__(self, message: str, *, last_cycle: CycleResult | None = None, elapsed: float | None = None):
        self.summary = message
        self.last_cycle = last_cycle
        self.elapsed = elapsed
        super().__init__(_with_cycle_detail(message, last_cycle))


class DeadlineExceeded(AssertionFailure):
    """No cycle satisfied the assertion before the policy deadline."""

    def __init__(
        self,
        message: str,
        *,
        last_cycle: CycleResult | None = None,
        attempts: int = 0,
        elapsed: float | None = None,
    ):
        self.attempts = attempts
        super().__init__(message, last_cycle=last_cycle, elapsed=elapsed)


class SustainedViolation(AssertionFailure):
    """A cycle inside a sustained-success window failed."""

    def __init__(
        self,
        message: str,
        *,
        last_cycle: CycleResult | None = None,
        cycle_index: int = 0,
        elapsed: float | None = None,
    ):
        self.cycle_index = cycle_index
        super().__init__(message, last_cycle=last_cycle, elapsed=elapsed)


class AssertionCancelled(ProbeWatchError):
    """Caller-initiated abort observed between cycles."""

    def __init__(self, message: str, *, last_cycle: CycleResult | None = None, attempts: int = 0, reason: str | None = None):
        self.summary = message
        self.last_cycle = last_cycle
        self.attempts = attempts
        self.reason = reason
        super().__init__(_with_cycle_detail(message, last_cycle))


def _with_cycle_detail(message: str, last_cycle: CycleResult | None) -> str:
    if last_cycle is None:
        return message
    return f"{message}\nlast attempt: {last_cycle.describe()}"


__all__ = [
    "AssertionCancelled",
    "AssertionFailure",
    "DeadlineExceeded",
    "ErrorCategory",
    "ProbeConfigError",
    "ProbeWatchError",
    "SustainedViolation",
    "categorize_exception",
    "error_category_to_reason",
]
