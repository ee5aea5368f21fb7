"""Shared test fixtures and in-memory fakes for the chat pipeline."""

from __future__ import annotations

import pytest

from markbot.enrichment.metadata import LinkMetadata
from markbot.store.client import BookmarkStoreError
from markbot.store.models import Bookmark, NewBookmark


class FakeBookmarkStore:
    """In-memory stand-in for BookmarkStore. Records every call."""

    def __init__(self, bookmarks: list[Bookmark] | None = None) -> None:
        # Newest first, like the real store's ordering
        self.bookmarks: list[Bookmark] = list(bookmarks or [])
        self.calls: list[str] = []
        self.inserted: list[NewBookmark] = []
        self.fail = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            msg = "database unavailable"
            raise BookmarkStoreError(msg)

    async def list_reading(self, user_id: str, limit: int = 5) -> list[Bookmark]:
        self._record("list_reading")
        return [b for b in self.bookmarks if b.reading][:limit]

    async def list_recent(self, user_id: str, limit: int = 50) -> list[Bookmark]:
        self._record("list_recent")
        return self.bookmarks[:limit]

    async def find_by_url(self, user_id: str, url: str) -> Bookmark | None:
        self._record("find_by_url")
        return next((b for b in self.bookmarks if b.url == url), None)

    async def search(self, user_id: str, query: str, limit: int = 5) -> list[Bookmark]:
        self._record("search")
        if query.startswith("#"):
            tag = query[1:]
            hits = [b for b in self.bookmarks if tag in b.tags]
        else:
            q = query.lower()
            hits = [
                b
                for b in self.bookmarks
                if q in b.title.lower() or q in (b.description or "").lower() or q in b.url.lower()
            ]
        return hits[:limit]

    async def sample_random(
        self, user_id: str, *, prefer_reading: bool = True, limit: int = 20
    ) -> Bookmark | None:
        self._record("sample_random")
        reading = [b for b in self.bookmarks if b.reading][:10]
        pool = reading if prefer_reading and reading else self.bookmarks[:limit]
        return pool[0] if pool else None

    async def insert(self, user_id: str, bookmark: NewBookmark) -> Bookmark:
        self._record("insert")
        self.inserted.append(bookmark)
        saved = Bookmark(
            title=bookmark.title,
            url=bookmark.url,
            description=bookmark.description,
            tags=list(bookmark.tags),
        )
        self.bookmarks.insert(0, saved)
        return saved


class FakeAI:
    """Chat completer returning a canned answer or raising a given error."""

    def __init__(self, answer: str = "You saved 2 React articles.") -> None:
        self.answer = answer
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        if self.error is not None:
            raise self.error
        return self.answer


class FakeEnricher:
    """Metadata source returning fixed metadata."""

    def __init__(self, metadata: LinkMetadata | None = None) -> None:
        self.metadata = metadata or LinkMetadata()
        self.urls: list[str] = []

    async def fetch(self, url: str) -> LinkMetadata:
        self.urls.append(url)
        return self.metadata


class FakeProfiles:
    """Identity resolver backed by dicts."""

    def __init__(
        self,
        phones: dict[str, str] | None = None,
        telegram_ids: dict[str, str] | None = None,
    ) -> None:
        self.phones = phones or {}
        self.telegram_ids = telegram_ids or {}
        self.calls = 0

    async def resolve(
        self, *, phone: str | None = None, telegram_id: str | None = None
    ) -> str | None:
        self.calls += 1
        platform_id = telegram_id or phone
        if platform_id and platform_id in self.telegram_ids:
            return self.telegram_ids[platform_id]
        if phone and phone in self.phones:
            return self.phones[phone]
        return None


@pytest.fixture
def sample_bookmarks() -> list[Bookmark]:
    return [
        Bookmark(
            title="React Hooks Guide",
            url="https://react.dev/hooks",
            description="Everything about hooks",
            tags=["react", "hooks", "frontend"],
            reading=True,
        ),
        Bookmark(
            title="CSS Grid Tutorial",
            url="https://css-tricks.com/grid",
            tags=["css"],
        ),
        Bookmark(
            title="Python Packaging",
            url="https://packaging.python.org",
            description=None,
            tags=[],
            reading=True,
        ),
    ]


@pytest.fixture
def store(sample_bookmarks) -> FakeBookmarkStore:
    return FakeBookmarkStore(sample_bookmarks)


@pytest.fixture
def empty_store() -> FakeBookmarkStore:
    return FakeBookmarkStore()


@pytest.fixture
def ai() -> FakeAI:
    return FakeAI()


@pytest.fixture
def enricher() -> FakeEnricher:
    return FakeEnricher()


@pytest.fixture
def profiles() -> FakeProfiles:
    return FakeProfiles(phones={"+15550001111": "user-1"}, telegram_ids={"424242": "user-2"})
