"""Personality analysis: an AI summary of what a user's bookmarks say about them."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from markbot.llm.client import complete_tool

if TYPE_CHECKING:
    from markbot.store.models import Bookmark

logger = logging.getLogger(__name__)

ANALYSIS_LIMIT = 100

SYSTEM_PROMPT = (
    "You are a personality analyst. Analyze bookmark collections to provide "
    "insightful personality analysis."
)

USER_PROMPT = """\
Analyze this user's interests and personality based on their bookmark collection:

{collection}

Provide insights about their interests, topics they follow, reading patterns, \
and personality traits."""

ANALYSIS_TOOL = {
    "name": "personality_analysis",
    "description": "Return personality analysis based on bookmark collection",
    "input_schema": {
        "type": "object",
        "properties": {
            "interests": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Main interests (3-5 items)",
            },
            "topics": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Key topics they follow (3-5 items)",
            },
            "readingPatterns": {
                "type": "string",
                "description": "Description of their reading patterns and habits",
            },
            "personalityTraits": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Personality traits (3-5 items)",
            },
        },
        "required": ["interests", "topics", "readingPatterns", "personalityTraits"],
    },
}


class PersonalityAnalysis(BaseModel):
    """Structured analysis; serialized with the dashboard's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    interests: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    reading_patterns: str = Field(default="", alias="readingPatterns")
    personality_traits: list[str] = Field(default_factory=list, alias="personalityTraits")

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)


EMPTY_ANALYSIS = PersonalityAnalysis(
    interests=["Start saving bookmarks to unlock personality insights!"],
    topics=[],
    reading_patterns="No reading patterns yet - save some bookmarks to get started.",
    personality_traits=[],
)


class AnalysisError(Exception):
    """The model returned no usable analysis."""


def summarize_collection(bookmarks: list[Bookmark]) -> str:
    """JSON digest of the fields the analysis looks at."""
    summary = [
        {
            "title": b.title,
            "description": b.description,
            "tags": b.tags,
            "category": b.category,
        }
        for b in bookmarks
    ]
    return json.dumps(summary, indent=2, ensure_ascii=False)


async def analyze_bookmarks(bookmarks: list[Bookmark]) -> PersonalityAnalysis:
    """Ask the model for a personality analysis of *bookmarks*.

    Raises:
        AIBridgeError: when the model call fails.
        AnalysisError: when the model answered without the analysis tool call.
    """
    if not bookmarks:
        return EMPTY_ANALYSIS

    logger.info("Analyzing %d bookmarks", len(bookmarks))
    result = await complete_tool(
        SYSTEM_PROMPT,
        USER_PROMPT.format(collection=summarize_collection(bookmarks)),
        ANALYSIS_TOOL,
    )
    if result is None:
        msg = "No analysis returned from AI"
        raise AnalysisError(msg)
    return PersonalityAnalysis.model_validate(result)

