"""BookmarkStore: bookmark queries over Supabase (PostgREST)."""

from __future__ import annotations

import logging
import random
import re
import time
from typing import TYPE_CHECKING

from markbot.store.client import get_client, run_query
from markbot.store.models import Bookmark

if TYPE_CHECKING:
    from supabase import Client

    from markbot.store.models import NewBookmark

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, url, description, tags, category, reading, created_at"

# Reading-list subset considered first when picking a random suggestion.
READING_SAMPLE_SIZE = 10

# Characters with meaning inside a PostgREST or=() filter.
_FILTER_META = re.compile(r"[,()%*\\]")


def _ilike_term(term: str) -> str:
    """Make a search term safe for an ilike pattern inside an or=() filter."""
    return _FILTER_META.sub(" ", term).strip()


class BookmarkStore:
    """Reads and writes the ``bookmarks`` table for one user at a time.

    Pass an explicit *client* for tests; otherwise the shared service-role
    client is used. Every method raises ``BookmarkStoreError`` on failure.
    """

    def __init__(self, client: Client | None = None, rng: random.Random | None = None) -> None:
        self._client = client
        self._rng = rng or random.Random()

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def _table(self):  # noqa: ANN202
        return self.client.table("bookmarks")

    # -- Reads -----------------------------------------------------------------

    async def list_reading(self, user_id: str, limit: int = 5) -> list[Bookmark]:
        """Most recent reading-list bookmarks, newest first."""
        start = time.monotonic()
        rows = await run_query(
            self._table()
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .eq("reading", True)
            .order("created_at", desc=True)
            .limit(limit)
        )
        logger.info(
            "Reading list: user=%s count=%d (%.0fms)",
            user_id,
            len(rows),
            (time.monotonic() - start) * 1000,
        )
        return [Bookmark.from_row(r) for r in rows]

    async def list_recent(self, user_id: str, limit: int = 50) -> list[Bookmark]:
        """Most recent bookmarks of any kind, newest first."""
        rows = await run_query(
            self._table()
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        return [Bookmark.from_row(r) for r in rows]

    async def find_by_url(self, user_id: str, url: str) -> Bookmark | None:
        """Return the user's bookmark for *url*, if any."""
        rows = await run_query(
            self._table().select(_COLUMNS).eq("user_id", user_id).eq("url", url).limit(1)
        )
        return Bookmark.from_row(rows[0]) if rows else None

    async def search(self, user_id: str, query: str, limit: int = 5) -> list[Bookmark]:
        """Search by tag (``#tag``) or by substring of title/description/url."""
        start = time.monotonic()
        builder = self._table().select(_COLUMNS).eq("user_id", user_id)

        if query.startswith("#"):
            tag = query[1:].strip()
            if not tag:
                return []
            builder = builder.contains("tags", [tag])
        else:
            term = _ilike_term(query)
            if not term:
                # Nothing left to match on; an empty ilike pattern matches every row
                return []
            builder = builder.or_(
                f"title.ilike.%{term}%,description.ilike.%{term}%,url.ilike.%{term}%"
            )

        rows = await run_query(builder.order("created_at", desc=True).limit(limit))
        logger.info(
            "Search: user=%s query=%r count=%d (%.0fms)",
            user_id,
            query[:80],
            len(rows),
            (time.monotonic() - start) * 1000,
        )
        return [Bookmark.from_row(r) for r in rows]

    async def sample_random(
        self,
        user_id: str,
        *,
        prefer_reading: bool = True,
        limit: int = 20,
    ) -> Bookmark | None:
        """Pick one bookmark uniformly at random.

        With *prefer_reading*, the pick comes from the reading list (up to
        ``READING_SAMPLE_SIZE`` rows) when it is non-empty; otherwise from the
        *limit* most recent bookmarks.
        """
        candidates: list[Bookmark] = []
        if prefer_reading:
            candidates = await self.list_reading(user_id, limit=READING_SAMPLE_SIZE)
        if not candidates:
            candidates = await self.list_recent(user_id, limit=limit)
        if not candidates:
            return None
        return self._rng.choice(candidates)

    # -- Writes ----------------------------------------------------------------

    async def insert(self, user_id: str, bookmark: NewBookmark) -> Bookmark:
        """Insert a bookmark and return the stored row."""
        rows = await run_query(self._table().insert(bookmark.to_row(user_id)))
        logger.info("Bookmark inserted: user=%s url=%s", user_id, bookmark.url)
        if rows:
            return Bookmark.from_row(rows[0])
        return Bookmark(
            title=bookmark.title,
            url=bookmark.url,
            description=bookmark.description,
            tags=list(bookmark.tags),
            reading=bookmark.reading,
        )
