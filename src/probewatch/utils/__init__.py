# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility exports."""

from .cancel import CancellationToken
from .text import decode_body, truncate_text_bytes

__all__ = ["CancellationToken", "decode_body", "truncate_text_bytes"]
