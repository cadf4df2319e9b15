"""Cached reference-data snapshots.

These are the JSON-safe shapes stored in the cache store, so they carry
plain values only (no ORM instances).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, TypeAdapter


class CommunitySnapshot(BaseModel):
    """Community resolved from the Host header."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    host: str


class PinnedLinkSnapshot(BaseModel):
    """Sidebar pinned link."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    community_id: int | None
    label: str | None
    link: str | None
    post_id: int | None
    shown_before: datetime | None


class HotQuestionSnapshot(BaseModel):
    """Entry in the hot questions sidebar list."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str | None
    post_type: str
    score: float
    category_id: int | None
    last_activity: datetime


class CategorySnapshot(BaseModel):
    """Category shown in the site header."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sequence: int


pinned_links_adapter = TypeAdapter(list[PinnedLinkSnapshot])
hot_questions_adapter = TypeAdapter(list[HotQuestionSnapshot])
categories_adapter = TypeAdapter(list[CategorySnapshot])
