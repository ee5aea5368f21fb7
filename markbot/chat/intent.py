"""Rule-based intent classifier for free-text chat messages.

Pure string heuristics, no LLM call. Rules are evaluated in a fixed priority
order and the first one that matches wins; see ``RULES``.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from markbot.chat.relevance import TECH_TERMS, is_bookmark_related


class IntentKind(Enum):
    """Action a chat message maps to."""

    READING_LIST = "reading_list"
    ADD_LINK = "add_link"
    SEARCH = "search"
    BORED = "bored"
    CHAT = "chat"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class Intent:
    """Classification result with its kind-specific payload."""

    kind: IntentKind
    query: str | None = None
    url: str | None = None


_BORED_WORDS = ("bored", "bore")
_READING_PHRASES = ("reading list", "show reading")

_URL = re.compile(r"https?://\S+", re.IGNORECASE)
_ADD_WORD = re.compile(r"add", re.IGNORECASE)

_SEARCH_PREFIXES = ("search ", "find ")
_SEARCH_VERB = re.compile(r"^(search|find)\s+", re.IGNORECASE)
_MIN_SEARCH_LENGTH = 7

CHAT_KEYWORDS = (
    "?",
    "what",
    "why",
    "how",
    "when",
    "where",
    "who",
    "which",
    "recommend",
    "suggest",
    "tell me",
    "show me",
    "do i",
    "did i",
    "can you",
    "summarize",
    "summarise",
    "summerise",
    "learn",
    "topics",
    "about",
    "framework",
    "articles",
    "resources",
    "should i",
    "help",
    "any",
    "have i",
    "my bookmarks",
    "my collection",
)

_FALLBACK_MIN_WORDS = 3

_UNKNOWN = Intent(IntentKind.UNKNOWN)

Rule = Callable[[str, str], "Intent | None"]


def _gated_chat(text: str) -> Intent:
    """Chat if the relevance gate accepts *text*, otherwise Unknown."""
    if is_bookmark_related(text):
        return Intent(IntentKind.CHAT)
    return _UNKNOWN


def _bored(text: str, lower: str) -> Intent | None:
    if any(w in lower for w in _BORED_WORDS):
        return Intent(IntentKind.BORED)
    return None


def _reading_list(text: str, lower: str) -> Intent | None:
    if lower == "reading" or any(p in lower for p in _READING_PHRASES):
        return Intent(IntentKind.READING_LIST)
    return None


def _add_link(text: str, lower: str) -> Intent | None:
    match = _URL.search(text)
    if match is None:
        return None
    url = match.group(0)
    description = text.replace(url, "", 1)
    description = _ADD_WORD.sub("", description, count=1).strip()
    if description == url:
        description = ""
    return Intent(IntentKind.ADD_LINK, query=description, url=url)


def _search(text: str, lower: str) -> Intent | None:
    if lower.startswith(_SEARCH_PREFIXES) and len(lower) > _MIN_SEARCH_LENGTH:
        query = _SEARCH_VERB.sub("", text, count=1).strip()
        return Intent(IntentKind.SEARCH, query=query)
    return None


def _chat_keywords(text: str, lower: str) -> Intent | None:
    if any(k in lower for k in CHAT_KEYWORDS):
        return _gated_chat(text)
    return None


def _single_tech_term(text: str, lower: str) -> Intent | None:
    words = lower.split()
    if len(words) == 1 and words[0] in TECH_TERMS:
        return Intent(IntentKind.CHAT)
    return None


def _fallback_chat(text: str, lower: str) -> Intent | None:
    if len(lower.split()) >= _FALLBACK_MIN_WORDS and not lower.startswith("#"):
        return _gated_chat(text)
    return None


# Priority order matters: "I'm bored, add https://x.io" is Bored, and
# "reading list of https://x.io" is ReadingList rather than AddLink.
RULES: tuple[tuple[str, Rule], ...] = (
    ("bored", _bored),
    ("reading_list", _reading_list),
    ("add_link", _add_link),
    ("search", _search),
    ("chat_keywords", _chat_keywords),
    ("single_tech_term", _single_tech_term),
    ("fallback_chat", _fallback_chat),
)


def classify(message: str) -> Intent:
    """Classify a chat message. Case-insensitive, ignores surrounding whitespace."""
    text = message.strip()
    lower = text.lower()
    for _name, rule in RULES:
        intent = rule(text, lower)
        if intent is not None:
            return intent
    return _UNKNOWN
