"""Tests for ChatService: identity, validation, rate limiting, dispatch."""

from unittest.mock import AsyncMock

import pytest

from markbot.chat import replies
from markbot.chat.dispatcher import IntentDispatcher
from markbot.chat.rate_limit import RateLimiter
from markbot.chat.service import ChatMessage, ChatReply, ChatService
from markbot.store.client import BookmarkStoreError


@pytest.fixture
def limiter():
    return RateLimiter(window_seconds=60, max_requests=3, clock=lambda: 1_000.0)


@pytest.fixture
def service(profiles, limiter, store, ai, enricher):
    dispatcher = IntentDispatcher(store, ai, enricher)
    return ChatService(profiles, limiter, dispatcher, max_message_length=1000)


async def test_missing_identity_is_401(service, profiles):
    result = await service.process(ChatMessage("reading list"))
    assert result == ChatReply(replies.MISSING_IDENTITY, status=401)
    assert profiles.calls == 0


async def test_empty_message(service, profiles):
    result = await service.process(ChatMessage("   ", phone="+15550001111"))
    assert result == ChatReply(replies.EMPTY_MESSAGE)
    assert profiles.calls == 0


async def test_message_too_long(service):
    result = await service.process(ChatMessage("a" * 1001, phone="+15550001111"))
    assert result.status == 200
    assert "1000" in result.reply


async def test_message_at_limit_is_accepted(service):
    result = await service.process(ChatMessage("a" * 1000, phone="+15550001111"))
    assert result == ChatReply(replies.HELP)


async def test_unregistered_telegram_sender(service, store):
    result = await service.process(ChatMessage("reading list", telegram_id="999"))
    assert result.status == 200
    assert result.reply.startswith("📱 Not registered.")
    assert result.reply.endswith("Your Telegram ID: 999")
    assert store.calls == []


async def test_unregistered_phone_sender(service, store):
    result = await service.process(ChatMessage("reading list", phone="+10000000000"))
    assert result.reply.endswith("Your phone number: +10000000000")
    assert store.calls == []


async def test_relay_telegram_id_in_phone_field(service):
    result = await service.process(ChatMessage("reading list", phone="424242"))
    assert result.reply.startswith("📚 *Reading List*")


async def test_phone_sender_gets_reading_list(service):
    result = await service.process(ChatMessage("reading list", phone="+15550001111"))
    assert result.status == 200
    assert result.reply.startswith("📚 *Reading List*")


async def test_telegram_sender_searches(service):
    result = await service.process(ChatMessage("search #css", telegram_id="424242"))
    assert "CSS Grid Tutorial" in result.reply


async def test_off_topic_gets_help(service, ai):
    result = await service.process(
        ChatMessage("What is the capital of France?", phone="+15550001111")
    )
    assert result == ChatReply(replies.HELP)
    assert ai.calls == []


async def test_chat_passes_trimmed_body_to_ai(service, ai):
    await service.process(ChatMessage("  what react articles did I save?  ", phone="+15550001111"))
    assert ai.calls[0][1] == "what react articles did I save?"


async def test_rate_limit_after_max_requests(service):
    msg = ChatMessage("reading list", phone="+15550001111")
    for _ in range(3):
        assert (await service.process(msg)).status == 200

    result = await service.process(msg)
    assert result == ChatReply(replies.RATE_LIMITED, status=429)


async def test_rate_limit_is_per_user(service):
    for _ in range(4):
        await service.process(ChatMessage("reading list", phone="+15550001111"))

    result = await service.process(ChatMessage("reading list", telegram_id="424242"))
    assert result.status == 200


async def test_unregistered_senders_do_not_consume_quota(service, limiter, store):
    for _ in range(5):
        await service.process(ChatMessage("hi", phone="+10000000000"))
    assert len(limiter) == 0
    assert store.calls == []


async def test_identity_lookup_failure_is_generic_error(limiter, store, ai, enricher):
    profiles = AsyncMock()
    profiles.resolve.side_effect = BookmarkStoreError("down")
    service = ChatService(profiles, limiter, IntentDispatcher(store, ai, enricher))

    result = await service.process(ChatMessage("reading list", phone="+15550001111"))

    assert result == ChatReply(replies.GENERIC_ERROR)


def test_sender_prefers_telegram_id():
    assert ChatMessage("x", phone="+1", telegram_id="7").sender == "7"
    assert ChatMessage("x", phone="+1").sender == "+1"
    assert ChatMessage("x").sender == ""
