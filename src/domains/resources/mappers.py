# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Field-name translation between the backend and the store's view models.

Every mapping lives here as a pure function so call sites never rename
fields themselves. Outgoing payloads accept either the view-model name
(``isPremium``), the Python attribute name (``is_premium``) or the wire
name, and never mutate the caller's mapping.
"""

import datetime
from collections.abc import Mapping
from enum import Enum
from typing import Any

from src.domains.resources.models import StudyEvent, User, Video, VideoLesson
from src.utils.datetime import format_upload_date

VIDEO_FIELD_MAP: dict[str, str] = {
    "isPremium": "is_premium",
    "videoUrl": "video_url",
    "uploadedBy": "uploaded_by",
}

# View-only fields the backend derives itself
VIDEO_READ_ONLY_FIELDS = frozenset({"uploadedAt", "uploaded_at"})

STUDY_EVENT_FIELD_MAP: dict[str, str] = {
    "date": "event_date",
    "type": "event_type",
    "isCompleted": "is_completed",
    "isArchived": "is_archived",
}


def _wire_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    return value


def translate_fields(
    fields: Mapping[str, Any],
    field_map: Mapping[str, str],
    drop: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Build a wire payload from view-model fields.

    Args:
        fields: Fields to send. Left unmodified.
        field_map: View-model name to wire name translations. Names not in
            the map are sent as-is.
        drop: Names never sent to the backend.

    Returns:
        A new dictionary keyed by wire names with JSON-ready values.
    """
    payload: dict[str, Any] = {}
    for name, value in fields.items():
        if name in drop:
            continue
        payload[field_map.get(name, name)] = _wire_value(value)
    return payload


def video_to_lesson(video: Video) -> VideoLesson:
    """Convert a wire video into the VideoLesson view model."""
    return VideoLesson(
        id=video.id,
        title=video.title,
        description=video.description or "",
        subject=video.subject,
        grade=video.grade,
        thumbnail=video.thumbnail or "",
        video_url=video.video_url,
        instructor=video.instructor or "Unknown",
        views=video.views,
        likes=video.likes,
        uploaded_at=format_upload_date(video.created_at),
        is_premium=video.is_premium,
    )


def video_from_api(data: Mapping[str, Any]) -> VideoLesson:
    return video_to_lesson(Video.model_validate(data))


def video_payload_to_api(fields: Mapping[str, Any]) -> dict[str, Any]:
    return translate_fields(fields, VIDEO_FIELD_MAP, drop=VIDEO_READ_ONLY_FIELDS)


def study_event_from_api(data: Mapping[str, Any]) -> StudyEvent:
    """Convert a planner event row (``event_date``, ``event_type``, ...)."""
    return StudyEvent(
        id=data["id"],
        title=data.get("title", ""),
        subject=data.get("subject") or "",
        date=data["event_date"],
        type=data["event_type"],
        is_completed=bool(data.get("is_completed")),
        is_archived=bool(data.get("is_archived")),
        notes=data.get("notes"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def study_event_payload_to_api(fields: Mapping[str, Any]) -> dict[str, Any]:
    return translate_fields(fields, STUDY_EVENT_FIELD_MAP)


def user_from_api(data: Mapping[str, Any]) -> User:
    """Convert an admin user row, accepting both naming styles."""
    return User(
        id=data["id"],
        name=data.get("name") or "",
        email=data.get("email") or "",
        role=data.get("role") or "STUDENT",
        is_premium=bool(data.get("is_premium") or data.get("isPremium")),
        status=data.get("status"),
        joined_date=data.get("created_at") or data.get("joinedDate"),
        last_active_date=data.get("last_active_date") or data.get("lastActiveDate"),
        xp=data.get("xp") or 0,
        level=data.get("level") or 1,
        streak=data.get("streak") or 0,
        bookmarks=data.get("bookmarks") or (),
    )
