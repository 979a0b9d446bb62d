# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe executor, response models and response buffering."""

from .adapters import CallableExecutor, StubExecutor, StubReply
from .buffer import CachedBody, ResponseBuffer
from .client import ProbeExecutor, create_default_executor
from .headers import has_header, header_value, header_values, normalize_headers
from .httpx_client import HttpxExecutor
from .models import Executed, ExecutionFailed, HttpResponse, ProbeOutcome, ResponseBody, StreamBody

__all__ = [
    "CachedBody",
    "CallableExecutor",
    "Executed",
    "ExecutionFailed",
    "HttpResponse",
    "HttpxExecutor",
    "ProbeExecutor",
    "ProbeOutcome",
    "ResponseBody",
    "ResponseBuffer",
    "StreamBody",
    "StubExecutor",
    "StubReply",
    "create_default_executor",
    "has_header",
    "header_value",
    "header_values",
    "normalize_headers",
]
