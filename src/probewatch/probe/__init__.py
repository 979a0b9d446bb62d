# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe specification and builder options."""

from .options import (
    ProbeOption,
    build_probe_spec,
    ensure_probe_spec,
    with_body,
    with_follow_redirects,
    with_header,
    with_host,
    with_host_header,
    with_insecure,
    with_method,
    with_path,
    with_port,
    with_query,
    with_scheme,
    with_timeout,
)
from .spec import ProbeSpec

__all__ = [
    "ProbeOption",
    "ProbeSpec",
    "build_probe_spec",
    "ensure_probe_spec",
    "with_body",
    "with_follow_redirects",
    "with_header",
    "with_host",
    "with_host_header",
    "with_insecure",
    "with_method",
    "with_path",
    "with_port",
    "with_query",
    "with_scheme",
    "with_timeout",
]
