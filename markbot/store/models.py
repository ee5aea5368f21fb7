"""Bookmark data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Bookmark:
    """A saved link as stored in the ``bookmarks`` table.

    Attributes:
        title: Display title.
        url: The http(s) URL, unique per user.
        description: Optional free-text description.
        tags: Tag names without the leading ``#``.
        reading: Whether the bookmark is on the reading list.
        category: Optional category label set from the dashboard.
        id: Row ID (None for rows built outside the database).
        created_at: ISO 8601 timestamp from the database.
    """

    title: str
    url: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    reading: bool = False
    category: str | None = None
    id: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Bookmark:
        """Build from a PostgREST row, tolerating missing optional columns."""
        return cls(
            title=row.get("title") or row.get("url") or "",
            url=row.get("url") or "",
            description=row.get("description") or None,
            tags=list(row.get("tags") or []),
            reading=bool(row.get("reading", False)),
            category=row.get("category") or None,
            id=str(row["id"]) if row.get("id") is not None else None,
            created_at=row.get("created_at"),
        )


@dataclass
class NewBookmark:
    """Fields for a bookmark insert."""

    url: str
    title: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    reading: bool = False

    def to_row(self, user_id: str) -> dict[str, Any]:
        return {
            "user_id": user_id,
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
            "reading": self.reading,
        }
