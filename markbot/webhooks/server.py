"""Async HTTP server for chat webhooks.

Routes:
- ``POST /chat``: n8n / Telegram relay; answers ``{"reply": ...}`` synchronously
- ``GET|POST /whatsapp``: WhatsApp Cloud API verification and inbound messages
- ``POST /analyze-personality``: dashboard personality analysis
- ``GET /health``: liveness check

Uses aiohttp's AppRunner/TCPSite so it can share an event loop with the
Telegram polling bot.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from markbot.chat import replies
from markbot.chat.service import ChatMessage, ChatService, build_chat_service
from markbot.config import settings
from markbot.insights.personality import ANALYSIS_LIMIT, AnalysisError, analyze_bookmarks
from markbot.llm.client import AIPaymentRequiredError, AIRateLimitedError
from markbot.notifications.channels import DeliveryChannel
from markbot.notifications.whatsapp_channel import WhatsAppChannel
from markbot.store.bookmarks import BookmarkStore
from markbot.store.profiles import ProfileStore
from markbot.webhooks.payloads import extract_whatsapp_message, normalize_chat_payload

logger = logging.getLogger(__name__)

CHAT_SERVICE = web.AppKey("chat_service", ChatService)
WHATSAPP_CHANNEL = web.AppKey("whatsapp_channel", DeliveryChannel)
BOOKMARK_STORE = web.AppKey("bookmark_store", BookmarkStore)
PROFILE_STORE = web.AppKey("profile_store", ProfileStore)


def _reply(text: str, status: int = 200) -> web.Response:
    return web.json_response({"reply": text}, status=status)


# -- Chat ----------------------------------------------------------------------


async def _handle_chat(request: web.Request) -> web.Response:
    """POST /chat: classify and answer one message.

    Always 200 so relays can deliver the reply, except 401 (no sender or bad
    secret) and 429 (rate limited).
    """
    if settings.webhook_secret:
        secret = request.headers.get("X-Webhook-Secret", "")
        if secret != settings.webhook_secret:
            logger.warning("Chat webhook rejected: invalid secret")
            return _reply("unauthorized", status=401)

    try:
        payload: Any = await request.json()
    except Exception:
        logger.warning("Chat webhook bad request: invalid JSON")
        return _reply(replies.INVALID_REQUEST)

    try:
        chat_request = normalize_chat_payload(payload)
    except (ValidationError, ValueError):
        logger.warning("Chat webhook bad request: unrecognized payload")
        return _reply(replies.INVALID_REQUEST)

    service = request.app[CHAT_SERVICE]
    try:
        result = await service.process(chat_request.to_message())
    except Exception:
        logger.exception("Chat webhook failed")
        return _reply(replies.GENERIC_ERROR)
    return _reply(result.reply, status=result.status)


# -- WhatsApp ------------------------------------------------------------------


async def _handle_whatsapp_verify(request: web.Request) -> web.Response:
    """GET /whatsapp: Meta's webhook subscription handshake."""
    mode = request.query.get("hub.mode")
    token = request.query.get("hub.verify_token")
    challenge = request.query.get("hub.challenge", "")

    if (
        mode == "subscribe"
        and settings.whatsapp_verify_token
        and token == settings.whatsapp_verify_token
    ):
        logger.info("WhatsApp webhook verified")
        return web.Response(text=challenge)
    return web.Response(text="Forbidden", status=403)


async def _handle_whatsapp_inbound(request: web.Request) -> web.Response:
    """POST /whatsapp: acknowledge immediately, reply in the background."""
    try:
        payload: dict[str, Any] = await request.json()
    except Exception:
        return web.json_response({"error": "invalid JSON"}, status=400)

    extracted = extract_whatsapp_message(payload) if isinstance(payload, dict) else None
    if extracted is None:
        # Status updates (delivered/read) carry no message
        logger.debug("WhatsApp webhook without a text message")
        return web.json_response({"success": True})

    phone, text = extracted
    logger.info(
        "WhatsApp message: from=%s, time=%s",
        phone,
        time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    )

    asyncio.create_task(
        _run_whatsapp_handler(
            request.app[CHAT_SERVICE], request.app[WHATSAPP_CHANNEL], phone, text
        )
    )
    return web.json_response({"success": True})


async def _run_whatsapp_handler(
    service: ChatService, channel: DeliveryChannel, phone: str, text: str
) -> None:
    """Process a WhatsApp message and push the reply, logging any failure."""
    try:
        result = await service.process(ChatMessage(body=text, phone=phone))
        sent = await channel.send(phone, result.reply)
        if not sent:
            logger.error("WhatsApp reply not delivered to %s", phone)
    except Exception:
        logger.exception("WhatsApp handler failed: from=%s", phone)


# -- Personality analysis ------------------------------------------------------


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _handle_analyze_personality(request: web.Request) -> web.Response:
    """POST /analyze-personality: analysis of the caller's bookmarks."""
    auth = request.headers.get("Authorization", "")
    if not auth:
        return _error("No authorization header", 401)
    token = auth.removeprefix("Bearer ").strip()

    user_id = await request.app[PROFILE_STORE].user_from_token(token)
    if user_id is None:
        return _error("Unauthorized", 401)

    try:
        bookmarks = await request.app[BOOKMARK_STORE].list_recent(user_id, limit=ANALYSIS_LIMIT)
        analysis = await analyze_bookmarks(bookmarks)
    except AIRateLimitedError:
        return _error("Rate limit exceeded. Please try again later.", 500)
    except AIPaymentRequiredError:
        return _error("AI service requires payment. Please add credits.", 500)
    except AnalysisError as exc:
        return _error(str(exc), 500)
    except Exception:
        logger.exception("Personality analysis failed for user=%s", user_id)
        return _error("AI analysis failed", 500)

    return web.json_response(analysis.to_response())


# -- App -----------------------------------------------------------------------


async def _health(request: web.Request) -> web.Response:
    """GET /health: basic liveness check."""
    return web.json_response({"status": "ok"})


def _create_web_app(
    service: ChatService | None = None,
    *,
    whatsapp: DeliveryChannel | None = None,
    bookmarks: BookmarkStore | None = None,
    profiles: ProfileStore | None = None,
) -> web.Application:
    """Build the aiohttp Application with routes and collaborators."""
    app = web.Application()
    app[CHAT_SERVICE] = service or build_chat_service()
    app[WHATSAPP_CHANNEL] = whatsapp or WhatsAppChannel()
    app[BOOKMARK_STORE] = bookmarks or BookmarkStore()
    app[PROFILE_STORE] = profiles or ProfileStore()

    app.router.add_get("/health", _health)
    app.router.add_post("/chat", _handle_chat)
    app.router.add_post("/analyze-personality", _handle_analyze_personality)

    if settings.whatsapp_enabled or settings.whatsapp_verify_token:
        app.router.add_get("/whatsapp", _handle_whatsapp_verify)
        app.router.add_post("/whatsapp", _handle_whatsapp_inbound)
        logger.info("WhatsApp routes registered at /whatsapp")

    return app


class WebhookServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(self, port: int | None = None, service: ChatService | None = None) -> None:
        self.port = port or settings.webhook_port
        self._service = service
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for webhooks."""
        app = _create_web_app(self._service)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "0.0.0.0", self.port)
        await site.start()
        logger.info("Webhook server listening on port %d", self.port)

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Webhook server stopped")
