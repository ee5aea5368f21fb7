"""Intent dispatcher: runs the handler for a classified intent.

Each handler returns the reply text. Collaborator failures (database, AI
model, metadata fetch) are converted to user-facing replies inside the
handler; ``dispatch`` itself never raises.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

from markbot.chat import replies
from markbot.chat.intent import IntentKind
from markbot.llm.client import (
    AINotConfiguredError,
    AIPaymentRequiredError,
    AIRateLimitedError,
    AIUnavailableError,
)
from markbot.store.client import BookmarkStoreError
from markbot.store.models import NewBookmark

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from markbot.chat.intent import Intent
    from markbot.enrichment.metadata import LinkMetadata
    from markbot.store.models import Bookmark

logger = logging.getLogger(__name__)

READING_LIST_LIMIT = 5
SEARCH_LIMIT = 5
SUGGESTION_POOL = 20
CHAT_CONTEXT_LIMIT = 50

SYSTEM_PROMPT = """\
You are a helpful assistant for a bookmark manager. The user saves bookmarks \
and you help them find, organize, and discover insights from their saved links.

Only answer questions about the user's bookmarks, reading habits, and the \
topics they have saved. Politely decline anything unrelated.

User's bookmarks (most recent first):
{context}

Provide helpful, concise answers about their bookmarks. Be conversational and \
friendly. Use emojis where appropriate."""


class BookmarkRepository(Protocol):
    """Bookmark operations the dispatcher needs."""

    async def list_reading(self, user_id: str, limit: int = 5) -> list[Bookmark]: ...

    async def list_recent(self, user_id: str, limit: int = 50) -> list[Bookmark]: ...

    async def find_by_url(self, user_id: str, url: str) -> Bookmark | None: ...

    async def search(self, user_id: str, query: str, limit: int = 5) -> list[Bookmark]: ...

    async def sample_random(
        self, user_id: str, *, prefer_reading: bool = True, limit: int = 20
    ) -> Bookmark | None: ...

    async def insert(self, user_id: str, bookmark: NewBookmark) -> Bookmark: ...


class ChatCompleter(Protocol):
    async def complete(self, system_prompt: str, user_message: str) -> str: ...


class MetadataSource(Protocol):
    async def fetch(self, url: str) -> LinkMetadata: ...


def build_context(bookmarks: list[Bookmark]) -> str:
    """Digest of bookmarks for the model's system prompt."""
    if not bookmarks:
        return "No bookmarks saved yet."
    entries = []
    for i, b in enumerate(bookmarks, start=1):
        title = f"{b.title} - {b.description}" if b.description else b.title
        lines = [
            f"{i}. {title}",
            f"   URL: {b.url}",
            f"   Tags: {', '.join(b.tags) if b.tags else 'none'}",
        ]
        if b.reading:
            lines.append("   📚 Reading list")
        entries.append("\n".join(lines))
    return "\n\n".join(entries)


def _host_title(url: str) -> str | None:
    """Host name of an http(s) URL, or None if the URL is not usable."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
        return None
    return parsed.hostname


class IntentDispatcher:
    """Routes intents to handlers backed by the bookmark store and AI bridge."""

    def __init__(
        self,
        store: BookmarkRepository,
        ai: ChatCompleter,
        enricher: MetadataSource,
    ) -> None:
        self._store = store
        self._ai = ai
        self._enricher = enricher
        self._handlers: dict[IntentKind, Callable[[Intent, str, str], Awaitable[str]]] = {
            IntentKind.READING_LIST: self._reading_list,
            IntentKind.ADD_LINK: self._add_link,
            IntentKind.SEARCH: self._search,
            IntentKind.BORED: self._bored,
            IntentKind.CHAT: self._chat,
            IntentKind.UNKNOWN: self._unknown,
        }

    async def dispatch(self, intent: Intent, user_id: str, message: str = "") -> str:
        """Run the handler for *intent* and return its reply."""
        handler = self._handlers.get(intent.kind, self._unknown)
        try:
            return await handler(intent, user_id, message)
        except Exception:
            logger.exception("Handler %s failed for user=%s", intent.kind.value, user_id)
            return replies.GENERIC_ERROR

    # -- Handlers --------------------------------------------------------------

    async def _reading_list(self, intent: Intent, user_id: str, message: str) -> str:
        try:
            bookmarks = await self._store.list_reading(user_id, limit=READING_LIST_LIMIT)
        except BookmarkStoreError:
            logger.exception("Reading list fetch failed for user=%s", user_id)
            return replies.READING_ERROR
        if not bookmarks:
            return replies.READING_EMPTY
        return replies.reading_list(bookmarks)

    async def _add_link(self, intent: Intent, user_id: str, message: str) -> str:
        url = intent.url or ""
        host = _host_title(url)
        if host is None:
            return replies.INVALID_URL

        try:
            existing = await self._store.find_by_url(user_id, url)
        except BookmarkStoreError:
            logger.exception("Duplicate check failed for user=%s", user_id)
            return replies.ADD_ERROR
        if existing is not None:
            return replies.ADD_EXISTS.format(title=existing.title, url=existing.url)

        metadata = await self._enricher.fetch(url)
        new = NewBookmark(
            url=url,
            title=metadata.title or host,
            description=intent.query or metadata.description or None,
            tags=list(metadata.tags),
        )

        try:
            saved = await self._store.insert(user_id, new)
        except BookmarkStoreError:
            logger.exception("Bookmark insert failed for user=%s", user_id)
            return replies.ADD_ERROR
        return replies.bookmark_added(saved)

    async def _search(self, intent: Intent, user_id: str, message: str) -> str:
        query = intent.query or ""
        try:
            bookmarks = await self._store.search(user_id, query, limit=SEARCH_LIMIT)
        except BookmarkStoreError:
            logger.exception("Search failed for user=%s query=%r", user_id, query[:80])
            return replies.SEARCH_ERROR
        if not bookmarks:
            return replies.SEARCH_EMPTY.format(query=query)
        return replies.search_results(query, bookmarks)

    async def _bored(self, intent: Intent, user_id: str, message: str) -> str:
        try:
            bookmark = await self._store.sample_random(
                user_id, prefer_reading=True, limit=SUGGESTION_POOL
            )
        except BookmarkStoreError:
            logger.exception("Suggestion fetch failed for user=%s", user_id)
            return replies.BORED_ERROR
        if bookmark is None:
            return replies.BORED_EMPTY
        return replies.suggestion(bookmark)

    async def _chat(self, intent: Intent, user_id: str, message: str) -> str:
        try:
            bookmarks = await self._store.list_recent(user_id, limit=CHAT_CONTEXT_LIMIT)
        except BookmarkStoreError:
            logger.exception("Chat context fetch failed for user=%s", user_id)
            return replies.AI_CONTEXT_ERROR

        system_prompt = SYSTEM_PROMPT.format(context=build_context(bookmarks))
        try:
            answer = await self._ai.complete(system_prompt, message)
        except AINotConfiguredError:
            logger.error("AI chat requested but no API key is configured")
            return replies.AI_NOT_CONFIGURED
        except AIRateLimitedError:
            return replies.AI_RATE_LIMITED
        except AIPaymentRequiredError:
            return replies.AI_PAYMENT_REQUIRED
        except AIUnavailableError:
            return replies.AI_UNAVAILABLE

        if not answer:
            logger.warning("Empty AI reply for user=%s", user_id)
            return replies.AI_EMPTY
        return replies.AI_PREFIX + answer

    async def _unknown(self, intent: Intent, user_id: str, message: str) -> str:
        return replies.HELP
