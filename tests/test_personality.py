"""Tests for bookmark personality analysis."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from markbot.insights.personality import (
    ANALYSIS_TOOL,
    EMPTY_ANALYSIS,
    AnalysisError,
    PersonalityAnalysis,
    analyze_bookmarks,
    summarize_collection,
)
from markbot.llm.client import AIRateLimitedError


async def test_empty_collection_skips_model():
    with patch("markbot.insights.personality.complete_tool", AsyncMock()) as mock:
        result = await analyze_bookmarks([])
    assert result is EMPTY_ANALYSIS
    mock.assert_not_awaited()


async def test_analysis_from_tool_call(sample_bookmarks):
    tool_input = {
        "interests": ["frontend"],
        "topics": ["react", "css"],
        "readingPatterns": "Skims tutorials",
        "personalityTraits": ["curious", "practical"],
    }
    with patch(
        "markbot.insights.personality.complete_tool", AsyncMock(return_value=tool_input)
    ) as mock:
        result = await analyze_bookmarks(sample_bookmarks)

    assert result.reading_patterns == "Skims tutorials"
    assert result.to_response() == tool_input
    _system, user_prompt, tool = mock.call_args.args
    assert tool is ANALYSIS_TOOL
    assert "React Hooks Guide" in user_prompt


async def test_missing_tool_call_raises(sample_bookmarks):
    with patch("markbot.insights.personality.complete_tool", AsyncMock(return_value=None)):
        with pytest.raises(AnalysisError, match="No analysis returned from AI"):
            await analyze_bookmarks(sample_bookmarks)


async def test_model_errors_propagate(sample_bookmarks):
    with patch(
        "markbot.insights.personality.complete_tool",
        AsyncMock(side_effect=AIRateLimitedError("429")),
    ):
        with pytest.raises(AIRateLimitedError):
            await analyze_bookmarks(sample_bookmarks)


def test_summarize_collection_fields(sample_bookmarks):
    summary = json.loads(summarize_collection(sample_bookmarks))
    assert summary[0] == {
        "title": "React Hooks Guide",
        "description": "Everything about hooks",
        "tags": ["react", "hooks", "frontend"],
        "category": None,
    }
    assert len(summary) == 3


def test_partial_tool_input_gets_defaults():
    analysis = PersonalityAnalysis.model_validate({"interests": ["ai"]})
    assert analysis.to_response() == {
        "interests": ["ai"],
        "topics": [],
        "readingPatterns": "",
        "personalityTraits": [],
    }
