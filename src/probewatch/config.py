# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for ProbeWatch."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from .errors import ProbeConfigError
from .version import __version__

DEFAULT_USER_AGENT = f"ProbeWatch/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _positive_float_env(name: str, default: float) -> float:
    value = _float_env(name, default)
    if not math.isfinite(value) or value <= 0:
        return default
    return value


@dataclass(frozen=True)
class TimingPolicy:
    """
    Deadline and polling interval for one scheduler run.

    `deadline` bounds the whole run (eventual mode) or is the observation window
    (sustained mode); `interval` is the minimum spacing between cycle starts.
    A deadline shorter than one interval yields exactly one attempt.
    """

    deadline: float
    interval: float

    def __post_init__(self) -> None:
        for name in ("deadline", "interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ProbeConfigError(f"timing policy {name} must be a finite number, got {value!r}")
        if self.interval <= 0:
            raise ProbeConfigError(f"timing policy interval must be > 0, got {self.interval!r}")
        if self.deadline < 0:
            raise ProbeConfigError(f"timing policy deadline must be >= 0, got {self.deadline!r}")

    @classmethod
    def of(cls, timeout: float, interval: float | None = None, *, default_interval: float = 1.0) -> TimingPolicy:
        """Build a policy from a timeout and an optional polling interval."""
        return cls(deadline=timeout, interval=interval if interval is not None else default_interval)

    @property
    def single_attempt(self) -> bool:
        return self.deadline < self.interval

    def __str__(self) -> str:
        return f"deadline={self.deadline:g}s interval={self.interval:g}s"


@dataclass
class HttpSettings:
    """Probe transport defaults."""

    timeout: float = 5.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = False
    verify_ssl: bool = True
    max_body_bytes: int = 16 * 1024 * 1024
    log_body_bytes: int = 2048

    @classmethod
    def from_env(cls) -> HttpSettings:
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("PROBEWATCH_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        log_body_bytes = _int_env("PROBEWATCH_LOG_BODY_BYTES", cls.log_body_bytes)
        if log_body_bytes < 0:
            log_body_bytes = cls.log_body_bytes
        return cls(
            timeout=_positive_float_env("PROBEWATCH_HTTP_TIMEOUT", cls.timeout),
            user_agent=os.getenv("PROBEWATCH_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("PROBEWATCH_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("PROBEWATCH_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            log_body_bytes=log_body_bytes,
        )


@dataclass
class TimingSettings:
    """Process-wide default timing pairs for eventual and sustained assertions."""

    eventual_timeout: float = 30.0
    eventual_interval: float = 1.0
    sustained_window: float = 3.0
    sustained_interval: float = 1.0

    @classmethod
    def from_env(cls) -> TimingSettings:
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            eventual_timeout=_positive_float_env("PROBEWATCH_EVENTUAL_TIMEOUT", cls.eventual_timeout),
            eventual_interval=_positive_float_env("PROBEWATCH_EVENTUAL_INTERVAL", cls.eventual_interval),
            sustained_window=_positive_float_env("PROBEWATCH_SUSTAINED_WINDOW", cls.sustained_window),
            sustained_interval=_positive_float_env("PROBEWATCH_SUSTAINED_INTERVAL", cls.sustained_interval),
        )

    def eventual_policy(self) -> TimingPolicy:
        return TimingPolicy(deadline=self.eventual_timeout, interval=self.eventual_interval)

    def sustained_policy(self) -> TimingPolicy:
        return TimingPolicy(deadline=self.sustained_window, interval=self.sustained_interval)


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()


def load_timing_settings() -> TimingSettings:
    """Load default timing policies from environment."""
    return TimingSettings.from_env()


__all__ = [
    "DEFAULT_USER_AGENT",
    "HttpSettings",
    "TimingPolicy",
    "TimingSettings",
    "load_http_settings",
    "load_timing_settings",
]
