# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting utilities: structured logging and UTC time helpers."""

from schoolboard.utils.datetime import utc_now, utc_today
from schoolboard.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "utc_today",
]
