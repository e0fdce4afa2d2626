# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for StudySync.

This module provides the date handling shared by the data layer:

1. Server timestamps are ISO 8601 strings, shown as short upload dates
2. Study events carry a calendar date with no time component
3. "Today" is the user's local calendar date, which is what the backend
   receives when the dashboard is requested

Usage:
------
    from src.utils.datetime import local_today, format_upload_date

    today = local_today()
    label = format_upload_date("2025-01-05T10:00:00Z")  # "Jan 5, 2025"
"""

from datetime import date, datetime


def local_today() -> date:
    """Get the current local calendar date.

    This is the local date, not the UTC date. Within a few hours of
    midnight the two differ, so the dashboard request and the "event is
    today" refresh rule follow the user's wall clock rather than UTC.
    Components that must key on UTC take a ``today_provider`` such as
    ``lambda: datetime.now(timezone.utc).date()``.

    Returns:
        Today's date in the process's local timezone.
    """
    return date.today()


def parse_calendar_date(value: str | date | datetime) -> date:
    """Parse a calendar date, dropping any time component.

    The backend returns event dates either as ``YYYY-MM-DD`` or as a full
    ISO timestamp at midnight; only the date part is meaningful.

    Args:
        value: Date string, date or datetime.

    Returns:
        The calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def format_upload_date(created_at: str | datetime | None) -> str:
    """Format a creation timestamp as a short human-readable date.

    Args:
        created_at: ISO 8601 timestamp or datetime.

    Returns:
        String like "Jan 5, 2025", or "" when the timestamp is missing
        or unparseable.
    """
    if created_at is None or created_at == "":
        return ""

    if isinstance(created_at, datetime):
        dt = created_at
    else:
        try:
            dt = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        except ValueError:
            return ""

    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"
