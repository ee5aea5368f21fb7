"""Request pipeline behind every chat transport.

identity → rate limit → classify → dispatch. Always produces a ``ChatReply``;
exceptions never reach the transport layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from markbot.chat import replies
from markbot.chat.intent import classify
from markbot.config import settings

if TYPE_CHECKING:
    from markbot.chat.dispatcher import IntentDispatcher
    from markbot.chat.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    """An inbound chat message with exactly one sender identity."""

    body: str
    phone: str | None = None
    telegram_id: str | None = None

    @property
    def sender(self) -> str:
        return self.telegram_id or self.phone or ""


@dataclass(frozen=True)
class ChatReply:
    """Reply text plus the HTTP status a webhook should answer with."""

    reply: str
    status: int = 200


class IdentityResolver(Protocol):
    async def resolve(
        self, *, phone: str | None = None, telegram_id: str | None = None
    ) -> str | None: ...


class ChatService:
    """Processes one inbound message into one reply."""

    def __init__(
        self,
        profiles: IdentityResolver,
        limiter: RateLimiter,
        dispatcher: IntentDispatcher,
        *,
        max_message_length: int | None = None,
    ) -> None:
        self._profiles = profiles
        self._limiter = limiter
        self._dispatcher = dispatcher
        self.max_message_length = max_message_length or settings.max_message_length

    async def process(self, message: ChatMessage) -> ChatReply:
        """Run the full pipeline. Never raises."""
        try:
            return await self._process(message)
        except Exception:
            logger.exception("Chat processing failed for sender=%s", message.sender)
            return ChatReply(replies.GENERIC_ERROR)

    async def _process(self, message: ChatMessage) -> ChatReply:
        if not message.phone and not message.telegram_id:
            logger.warning("Chat rejected: no sender identity")
            return ChatReply(replies.MISSING_IDENTITY, status=401)

        body = message.body.strip()
        if not body:
            return ChatReply(replies.EMPTY_MESSAGE)
        if len(body) > self.max_message_length:
            return ChatReply(replies.MESSAGE_TOO_LONG.format(limit=self.max_message_length))

        logger.info("Chat from %s: %s", message.sender, body[:80])

        user_id = await self._profiles.resolve(
            phone=message.phone, telegram_id=message.telegram_id
        )
        if user_id is None:
            if message.telegram_id:
                label, identifier = "Telegram ID", message.telegram_id
            else:
                label, identifier = "phone number", message.phone
            return ChatReply(replies.NOT_REGISTERED.format(label=label, identifier=identifier))

        decision = self._limiter.check(user_id)
        if not decision.allowed:
            logger.warning("Rate limited: user=%s reset_at=%.0f", user_id, decision.reset_at)
            return ChatReply(replies.RATE_LIMITED, status=429)

        intent = classify(body)
        logger.info("Intent for user=%s: %s", user_id, intent.kind.value)

        reply = await self._dispatcher.dispatch(intent, user_id, body)
        logger.info("Reply for user=%s: %d chars", user_id, len(reply))
        return ChatReply(reply)


def build_chat_service() -> ChatService:
    """Wire the production collaborators from settings."""
    from markbot.chat.dispatcher import IntentDispatcher
    from markbot.chat.rate_limit import RateLimiter
    from markbot.enrichment.metadata import MetadataFetcher
    from markbot.llm.client import AIBridge
    from markbot.store.bookmarks import BookmarkStore
    from markbot.store.profiles import ProfileStore

    limiter = RateLimiter(
        window_seconds=settings.rate_limit_window_seconds,
        max_requests=settings.rate_limit_max_requests,
        max_entries=settings.rate_limit_max_entries,
    )
    dispatcher = IntentDispatcher(
        store=BookmarkStore(),
        ai=AIBridge(),
        enricher=MetadataFetcher(),
    )
    return ChatService(ProfileStore(), limiter, dispatcher)
