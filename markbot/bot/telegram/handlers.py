"""Telegram message handlers for the polling transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram import Message, Update
from telegram.constants import ChatAction
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from markbot.chat import replies
from markbot.chat.service import ChatMessage

if TYPE_CHECKING:
    from markbot.chat.service import ChatService

logger = logging.getLogger(__name__)

SERVICE_KEY = "chat_service"

# Telegram rejects messages over 4096 characters.
MAX_TELEGRAM_LENGTH = 4096


def _service(context: ContextTypes.DEFAULT_TYPE) -> ChatService:
    return context.application.bot_data[SERVICE_KEY]


async def _reply(message: Message, text: str) -> None:
    """Reply with Markdown, resending as plain text if Telegram rejects the entities."""
    try:
        await message.reply_text(text, parse_mode="Markdown")
        return
    except BadRequest:
        logger.warning("Markdown reply rejected, resending as plain text", exc_info=True)
    except Exception:
        logger.exception("Failed to send Telegram reply to chat=%s", message.chat_id)
        return

    try:
        await message.reply_text(text)
    except Exception:
        logger.exception("Failed to send Telegram reply to chat=%s", message.chat_id)


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: greet the user and show the ID to register."""
    user = update.effective_user
    if user is None or update.message is None:
        return

    await _reply(
        update.message,
        "👋 Hi! I'm your bookmark assistant.\n\n"
        f"Your Telegram ID is {user.id}. Add it in your profile settings "
        "to connect your bookmarks.\n\n" + replies.HELP,
    )


async def handle_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help: list supported actions."""
    if update.message is None:
        return
    await _reply(update.message, replies.HELP)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Run a text message through the chat service and reply."""
    user = update.effective_user
    message = update.message
    if user is None or message is None or not message.text:
        return

    await context.bot.send_chat_action(chat_id=message.chat_id, action=ChatAction.TYPING)

    result = await _service(context).process(
        ChatMessage(body=message.text, telegram_id=str(user.id))
    )

    reply = result.reply
    if len(reply) > MAX_TELEGRAM_LENGTH:
        reply = reply[: MAX_TELEGRAM_LENGTH - 3] + "..."

    await _reply(message, reply)
