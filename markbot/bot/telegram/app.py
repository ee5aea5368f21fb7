"""Telegram application factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from markbot.bot.telegram.handlers import (
    SERVICE_KEY,
    handle_help,
    handle_message,
    handle_start,
)
from markbot.config import settings

if TYPE_CHECKING:
    from markbot.chat.service import ChatService
    from markbot.webhooks.server import WebhookServer

logger = logging.getLogger(__name__)

# Module-level reference so post_shutdown can access it.
_webhook_server: WebhookServer | None = None


async def _post_init(app: Application) -> None:
    """Start the webhook server on the bot's event loop."""
    global _webhook_server  # noqa: PLW0603

    from markbot.webhooks.server import WebhookServer

    _webhook_server = WebhookServer(service=app.bot_data[SERVICE_KEY])
    await _webhook_server.start()


async def _post_shutdown(app: Application) -> None:
    """Called during graceful shutdown."""
    if _webhook_server is not None:
        await _webhook_server.stop()


def create_app(service: ChatService | None = None) -> Application:
    """Build and configure the Telegram application."""
    from markbot.chat.service import build_chat_service

    app = Application.builder().token(settings.telegram_bot_token).concurrent_updates(True).build()
    app.bot_data[SERVICE_KEY] = service or build_chat_service()

    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler("help", handle_help))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    app.post_init = _post_init
    app.post_shutdown = _post_shutdown

    return app
