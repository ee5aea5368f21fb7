"""Reply texts and list formatting for chat responses.

Replies use Telegram-style ``*bold*`` markers; WhatsApp renders them the same
way and plain-text clients show them literally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from markbot.store.models import Bookmark

HELP = (
    "🤔 I can help you with:\n\n"
    "📚 *reading list* - Show your reading list\n"
    "🔗 *add [url]* - Add a bookmark\n"
    "🔍 *search [text]* - Search bookmarks\n"
    "🏷️ *search #tag* - Find bookmarks by tag\n"
    "😴 *I'm bored* - Get a random suggestion\n"
    "💬 *Ask me anything* - Chat about your bookmarks!"
)

GENERIC_ERROR = "Sorry, I encountered an error processing your request."

# Request validation
MISSING_IDENTITY = "❌ Missing sender. Provide a phone number or Telegram ID."
EMPTY_MESSAGE = "🤔 Your message was empty. Send *help* to see what I can do."
MESSAGE_TOO_LONG = "✂️ That message is too long. Please keep it under {limit} characters."
INVALID_REQUEST = "❌ I couldn't read that request."
RATE_LIMITED = "⏳ Too many messages. Please wait a minute and try again."
NOT_REGISTERED = (
    "📱 Not registered. Please add your Telegram ID or phone number "
    "in your profile settings.\n\nYour {label}: {identifier}"
)

# Reading list
READING_EMPTY = (
    "📚 Your reading list is empty.\n\nMark some bookmarks for reading from the dashboard!"
)
READING_ERROR = "❌ Error fetching reading list"

# Add link
INVALID_URL = "❌ Invalid URL. Please provide a valid link."
ADD_EXISTS = "ℹ️ *This link already exists in your bookmarks!*\n\n{title}\n{url}"
ADD_ERROR = "❌ Failed to add bookmark"

# Search
SEARCH_EMPTY = '🔍 No results for "{query}"'
SEARCH_ERROR = "❌ Search failed"

# Bored
BORED_EMPTY = (
    "📚 You don't have any bookmarks yet!\n\n"
    "Add some links to get personalized suggestions when you're bored."
)
BORED_ERROR = "❌ Could not fetch a suggestion"
BORED_FALLBACK_DESCRIPTION = "Enjoy! 🎯"

# AI chat
AI_PREFIX = "🤖 *AI Assistant*\n\n"
AI_NOT_CONFIGURED = "❌ AI chat is not configured. Please contact support."
AI_RATE_LIMITED = "⏳ AI is temporarily busy. Please try again in a moment."
AI_PAYMENT_REQUIRED = "💳 AI credits depleted. Please contact support."
AI_UNAVAILABLE = "❌ AI chat temporarily unavailable"
AI_EMPTY = "❌ Could not generate a response"
AI_CONTEXT_ERROR = "❌ Could not retrieve your bookmarks"


def format_tags(tags: list[str], limit: int) -> str:
    """Render up to *limit* tags as ``#a #b``."""
    return " ".join(f"#{t}" for t in tags[:limit])


def format_bookmark_list(header: str, bookmarks: list[Bookmark]) -> str:
    """Numbered list: title, url and up to two tags per entry."""
    lines = [header, ""]
    for i, b in enumerate(bookmarks, start=1):
        lines.append(f"{i}. {b.title}")
        lines.append(b.url)
        tags = format_tags(b.tags, 2)
        if tags:
            lines.append(tags)
        lines.append("")
    return "\n".join(lines).strip()


def reading_list(bookmarks: list[Bookmark]) -> str:
    n = len(bookmarks)
    header = f"📚 *Reading List* ({n} bookmark{'s' if n > 1 else ''})"
    return format_bookmark_list(header, bookmarks)


def search_results(query: str, bookmarks: list[Bookmark]) -> str:
    header = f'🔍 *Search: "{query}"* ({len(bookmarks)})'
    return format_bookmark_list(header, bookmarks)


def bookmark_added(bookmark: Bookmark) -> str:
    parts = [f"✅ *Bookmark added!*\n\n{bookmark.title}\n{bookmark.url}"]
    tags = format_tags(bookmark.tags, 3)
    if tags:
        parts.append(tags)
    return "\n".join(parts)


def suggestion(bookmark: Bookmark) -> str:
    tags = format_tags(bookmark.tags, 3)
    body = bookmark.description or BORED_FALLBACK_DESCRIPTION
    return f"✨ *Here's something for you:*\n\n{bookmark.title}\n{bookmark.url}\n{tags}\n\n{body}"
