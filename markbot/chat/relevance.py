"""Topic-relevance gate for conversational messages.

The assistant only discusses the user's bookmark collection. Messages that
reach the chat intent through the keyword or fallback rules must pass
``is_bookmark_related`` or they are answered with the help text instead.

Order of checks:
1. Off-topic pattern (trivia, weather, time, arithmetic, meta, greeting) → reject
2. Bookmark-domain keyword or URL → accept
3. Short message (≤3 words, no "?") → accept only with a technology term
4. Question ("?") → accept only with a collection-oriented phrase
5. Anything else → reject
"""

from __future__ import annotations

import re

# Single-word technology names. Shared with the classifier's single-term rule.
TECH_TERMS = frozenset({
    "react",
    "vue",
    "angular",
    "node",
    "python",
    "java",
    "ruby",
    "php",
    "swift",
    "css",
    "html",
    "javascript",
    "typescript",
    "nextjs",
    "tailwind",
    "prisma",
})

_OFF_TOPIC_PATTERNS = (
    # General-knowledge trivia
    re.compile(r"\b(capital|president|population|currency) of\b"),
    # Weather and time
    re.compile(r"\b(weather|forecast|temperature)\b"),
    re.compile(r"\bwhat time is it\b"),
    re.compile(r"\bwhat(?:'s| is) the (time|date)(?: today| now| right now)?\W*$"),
    re.compile(r"\bwhat day is (it|today)\b"),
    # Arithmetic
    re.compile(r"\d+\s*[+*/x×÷]\s*\d+|\d+\s+-\s+\d+"),
    re.compile(r"\bwhat(?:'s| is) \d+\b"),
    # Questions about the assistant itself
    re.compile(r"\bhow old are you\b"),
    re.compile(r"\b(what|who) are you\b"),
    re.compile(r"\bare you (a|an) (bot|ai|robot|human)\b"),
    re.compile(r"\bwho (made|built|created) you\b"),
    # Bare greeting
    re.compile(r"^(hi|hello|hey|sup)[\s!.?]*$"),
)

_WHO_IS = re.compile(r"\bwho (is|was)\b")
_WHO_IS_EXCEPTIONS = ("saved", "bookmark", "link")

_DOMAIN_KEYWORDS = re.compile(
    r"\b("
    r"bookmarks?|bookmarked"
    r"|links?"
    r"|save|saved|saving"
    r"|articles?"
    r"|reading list"
    r"|tutorials?"
    r"|tags?|tagged"
    r"|folders?"
    r"|collection"
    r"|docs|documentation"
    r"|frameworks?|librar(y|ies)"
    r"|resources?"
    r"|guides?"
    r")\b"
)

_TECH_PATTERN = re.compile(r"\b(" + "|".join(sorted(TECH_TERMS)) + r")\b")

_URL_PATTERN = re.compile(r"https?://\S+")

_COLLECTION_PHRASES = (
    "what",
    "how many",
    "which",
    "do i have",
    "did i save",
    "have i",
    "should i",
    "summarize",
    "summarise",
    "summerise",
    "recommend",
    "suggest",
    "topics",
    "most common",
    "my bookmarks",
    "my collection",
)

_SHORT_MESSAGE_WORDS = 3


def mentions_tech_term(text: str) -> bool:
    """True if *text* contains a known technology name as a whole word."""
    return _TECH_PATTERN.search(text.lower()) is not None


def is_off_topic(text: str) -> bool:
    """True if *text* matches a pattern the assistant must always refuse."""
    # URL paths often contain digit runs like 2024/05 that read as arithmetic.
    lower = _URL_PATTERN.sub(" ", text.lower()).strip()
    if any(p.search(lower) for p in _OFF_TOPIC_PATTERNS):
        return True
    if _WHO_IS.search(lower) and not any(w in lower for w in _WHO_IS_EXCEPTIONS):
        return True
    return False


def is_bookmark_related(text: str) -> bool:
    """Decide whether a candidate chat message is about the bookmark collection."""
    lower = text.lower().strip()
    if not lower:
        return False

    if is_off_topic(lower):
        return False

    if _DOMAIN_KEYWORDS.search(lower) or mentions_tech_term(lower):
        return True
    if _URL_PATTERN.search(lower):
        return True

    has_question = "?" in lower
    if len(lower.split()) <= _SHORT_MESSAGE_WORDS and not has_question:
        # Tech terms were accepted above; nothing else short is on-topic.
        return False

    if has_question:
        return any(phrase in lower for phrase in _COLLECTION_PHRASES)

    return False
