# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data models for the resource synchronization domain.

This module defines Pydantic models and enums for:
- Resource keys, fetch modes and mutation kinds
- The entities held in the store (documents, videos, forum posts,
  study events, users)
- The dashboard aggregate
- List query parameters and pagination state

Entities are frozen so that screens only ever hold read-only references;
the store swaps whole entities when something changes. Ids are always
strings, even when the backend sends numbers.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.utils.datetime import parse_calendar_date


class ResourceKey(str, Enum):
    """Keys of the state slices owned by the store."""

    DOCUMENTS = "documents"
    VIDEOS = "videos"
    FORUM_POSTS = "forumPosts"
    STUDY_EVENTS = "studyEvents"
    USERS = "users"
    DASHBOARD = "dashboard"


COLLECTION_KEYS: tuple[ResourceKey, ...] = (
    ResourceKey.DOCUMENTS,
    ResourceKey.VIDEOS,
    ResourceKey.FORUM_POSTS,
    ResourceKey.STUDY_EVENTS,
    ResourceKey.USERS,
)


class FetchMode(str, Enum):
    """How a fetched page is merged into its collection.

    - REPLACE: discard prior contents (initial load or filter change)
    - APPEND: add the page after existing items (load more)
    """

    REPLACE = "replace"
    APPEND = "append"


class MutationKind(str, Enum):
    """Kinds of server-confirmed local patches."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class StudyEventType(str, Enum):
    """Study planner event types."""

    EXAM = "Exam"
    REVISION = "Revision"
    ASSIGNMENT = "Assignment"


class ResourceModel(BaseModel):
    """Base for every entity kept in a resource collection."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str


def _tags_or_none(value: Any) -> Any:
    # Tag arrays from the backend can be missing or malformed
    return value if isinstance(value, (list, tuple)) else None


class Document(ResourceModel):
    """Library document (notes, past exams, worksheets)."""

    title: str
    description: str = ""
    subject: str = ""
    grade: int | None = None
    file_type: str | None = None
    file_url: str | None = None
    is_premium: bool = False
    downloads: int = 0
    preview_image: str | None = None
    tags: tuple[str, ...] | None = None
    author: str | None = None
    created_at: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: Any) -> Any:
        return _tags_or_none(value)


class Video(BaseModel):
    """Video lesson as it crosses the API boundary (snake_case)."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    id: str
    title: str
    description: str | None = None
    subject: str = ""
    grade: int | None = None
    thumbnail: str | None = None
    video_url: str = ""
    instructor: str | None = None
    views: int = 0
    likes: int = 0
    is_premium: bool = False
    uploaded_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class VideoLesson(ResourceModel):
    """Video lesson view model held in the store.

    Serialized with ``by_alias=True`` it uses the camelCase names screens
    expect (``isPremium``, ``uploadedAt``).
    """

    title: str
    description: str = ""
    subject: str = ""
    grade: int | None = None
    thumbnail: str = ""
    video_url: str = ""
    instructor: str = "Unknown"
    views: int = 0
    likes: int = 0
    uploaded_at: str = Field(default="", alias="uploadedAt")
    is_premium: bool = Field(default=False, alias="isPremium")


class ForumPost(ResourceModel):
    """Community forum post with its list-only author fields."""

    title: str
    content: str = ""
    subject: str = ""
    grade: int | None = None
    author: str | None = None
    author_role: str | None = Field(
        default=None, validation_alias=AliasChoices("author_role", "authorRole")
    )
    comment_count: int = 0
    votes: int = 0
    views: int = 0
    tags: tuple[str, ...] | None = None
    is_solved: bool = Field(
        default=False, validation_alias=AliasChoices("is_solved", "isSolved")
    )
    ai_answer: str | None = Field(
        default=None, validation_alias=AliasChoices("ai_answer", "aiAnswer")
    )
    created_at: str | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: Any) -> Any:
        return _tags_or_none(value)


class StudyEvent(ResourceModel):
    """Study planner event.

    ``date`` is a calendar date with no time component; an event whose date
    equals the current local date is one of "today's events".
    """

    title: str
    subject: str = ""
    date: datetime.date
    type: StudyEventType
    is_completed: bool = Field(default=False, alias="isCompleted")
    is_archived: bool = Field(default=False, alias="isArchived")
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_calendar_date(value)
        return value


class User(ResourceModel):
    """User as listed on the admin screen."""

    name: str = ""
    email: str = ""
    role: str = "STUDENT"
    is_premium: bool = Field(default=False, alias="isPremium")
    status: str | None = None
    joined_date: str | None = Field(default=None, alias="joinedDate")
    last_active_date: str | None = Field(default=None, alias="lastActiveDate")
    xp: int = 0
    level: int = 1
    streak: int = 0
    bookmarks: tuple[str, ...] = ()


class DashboardModel(BaseModel):
    """Base for the read-only dashboard snapshot parts."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class DashboardUser(DashboardModel):
    """Gamification snapshot of the signed-in user."""

    id: str
    name: str = ""
    xp: int = 0
    level: int = 1
    streak: int = 0
    is_premium: bool = Field(default=False, alias="isPremium")
    bookmarks: tuple[str, ...] = ()


class BookmarkSummary(DashboardModel):
    """Recently bookmarked document or video."""

    id: str
    type: Literal["document", "video"]
    title: str
    subject: str = ""
    grade: int | None = None
    preview_image: str | None = Field(default=None, alias="previewImage")
    is_premium: bool = Field(default=False, alias="isPremium")


class DashboardProgress(DashboardModel):
    """Today's completion and level progress."""

    today_completed: int = Field(default=0, alias="todayCompleted")
    today_total: int = Field(default=0, alias="todayTotal")
    today_percentage: float = Field(default=0.0, alias="todayPercentage")
    level_progress: float = Field(default=0.0, alias="levelProgress")
    xp_to_next_level: int = Field(default=0, alias="xpToNextLevel")


class DashboardAggregate(DashboardModel):
    """Server-composed landing screen snapshot."""

    user: DashboardUser
    todays_events: tuple[StudyEvent, ...] = Field(default=(), alias="todaysEvents")
    recent_bookmarks: tuple[BookmarkSummary, ...] = Field(default=(), alias="recentBookmarks")
    progress: DashboardProgress = Field(default_factory=DashboardProgress)


ResourceEntity = Document | VideoLesson | ForumPost | StudyEvent | User


class ListParams(BaseModel):
    """Query parameters of a list request.

    Unknown keyword arguments (e.g. the planner's ``date``, ``type``,
    ``completed`` or ``archived`` filters) are passed through to the query
    string unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    subject: str | None = None
    grade: int | None = None
    search: str | None = None
    tag: str | None = None
    exclude_tag: str | None = Field(default=None, alias="excludeTag")
    limit: int | None = Field(default=None, gt=0)
    offset: int | None = Field(default=None, ge=0)
    sort: str | None = None
    bookmarked: bool | None = None

    def to_query(self) -> dict[str, Any]:
        """Serialize to query parameters, dropping unset filters."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def with_page(self, limit: int, offset: int) -> "ListParams":
        """Return a copy addressing another page of the same query."""
        return self.model_copy(update={"limit": limit, "offset": offset})


class PaginationState(BaseModel):
    """Cursor of one screen-driven fetch sequence."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(gt=0)
    offset: int = Field(default=0, ge=0)
    has_more: bool = True


@dataclass(frozen=True)
class ListPage:
    """One page of entities returned by a list endpoint."""

    items: list[Any] = field(default_factory=list)
    has_more: bool = False
    total: int | None = None


@dataclass(frozen=True)
class FetchResult:
    """Outcome of ResourceStore.fetch.

    Attributes:
        has_more: Whether the server reports items beyond this page.
            Always False after a failed fetch.
        total: Total item count reported by the server, if any.
        applied: False when the response was discarded because a newer
            replace fetch for the same resource superseded it.
    """

    has_more: bool
    total: int | None = None
    applied: bool = True
