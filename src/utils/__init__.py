# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for StudySync.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Calendar date and upload date helpers
"""

from src.utils.datetime import format_upload_date, local_today, parse_calendar_date
from src.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Datetime
    "local_today",
    "parse_calendar_date",
    "format_upload_date",
]
