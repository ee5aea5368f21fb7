"""Tests for the Claude API client wrapper and its error mapping."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from markbot.llm import client as llm
from markbot.llm.client import (
    AIBridge,
    AINotConfiguredError,
    AIPaymentRequiredError,
    AIRateLimitedError,
    AIUnavailableError,
    complete,
    complete_tool,
)

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls, status: int):
    return cls(
        message=f"HTTP {status}",
        response=httpx.Response(status, request=_REQUEST),
        body=None,
    )


def _mock_client(*, content=None, error=None) -> MagicMock:
    mock = MagicMock()
    if error is not None:
        mock.messages.create = AsyncMock(side_effect=error)
    else:
        mock.messages.create = AsyncMock(return_value=SimpleNamespace(content=content or []))
    return mock


def _text(text: str):
    return SimpleNamespace(type="text", text=text)


# -- complete ----------------------------------------------------------------


async def test_complete_joins_text_blocks():
    mock = _mock_client(content=[_text("Hello "), _text("there.\n")])
    with patch("markbot.llm.client._get_client", return_value=mock):
        result = await complete("system", "question")

    assert result == "Hello there."
    kwargs = mock.messages.create.call_args.kwargs
    assert kwargs["system"] == "system"
    assert kwargs["messages"] == [{"role": "user", "content": "question"}]
    assert "tools" not in kwargs


async def test_complete_no_text_is_empty():
    mock = _mock_client(content=[SimpleNamespace(type="tool_use", name="x", input={})])
    with patch("markbot.llm.client._get_client", return_value=mock):
        assert await complete("system", "question") == ""


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_status_error(anthropic.RateLimitError, 429), AIRateLimitedError),
        (_status_error(anthropic.APIStatusError, 402), AIPaymentRequiredError),
        (_status_error(anthropic.InternalServerError, 500), AIUnavailableError),
        (_status_error(anthropic.AuthenticationError, 401), AIUnavailableError),
        (anthropic.APITimeoutError(request=_REQUEST), AIUnavailableError),
        (anthropic.APIConnectionError(request=_REQUEST), AIUnavailableError),
    ],
)
async def test_complete_error_mapping(error, expected):
    mock = _mock_client(error=error)
    with patch("markbot.llm.client._get_client", return_value=mock):
        with pytest.raises(expected):
            await complete("system", "question")


async def test_missing_api_key():
    class _NoKey:
        anthropic_api_key = ""

    with (
        patch("markbot.llm.client._client", None),
        patch("markbot.llm.client.settings", _NoKey()),
        pytest.raises(AINotConfiguredError),
    ):
        await complete("system", "question")


def test_client_is_built_without_retries():
    class _Configured:
        anthropic_api_key = "sk-test"
        anthropic_base_url = "https://gateway.example.com"
        ai_timeout_seconds = 8.0

    with (
        patch("markbot.llm.client._client", None),
        patch("markbot.llm.client.settings", _Configured()),
        patch("markbot.llm.client.anthropic.AsyncAnthropic") as mock_cls,
    ):
        llm._get_client()

    mock_cls.assert_called_once_with(
        api_key="sk-test",
        timeout=8.0,
        max_retries=0,
        base_url="https://gateway.example.com",
    )


# -- complete_tool -----------------------------------------------------------


async def test_complete_tool_returns_input():
    tool = {"name": "analysis", "input_schema": {"type": "object"}}
    block = SimpleNamespace(type="tool_use", name="analysis", input={"a": 1})
    mock = _mock_client(content=[block])
    with patch("markbot.llm.client._get_client", return_value=mock):
        result = await complete_tool("system", "question", tool)

    assert result == {"a": 1}
    kwargs = mock.messages.create.call_args.kwargs
    assert kwargs["tools"] == [tool]
    assert kwargs["tool_choice"] == {"type": "tool", "name": "analysis"}


async def test_complete_tool_without_tool_call():
    mock = _mock_client(content=[_text("I refuse")])
    with patch("markbot.llm.client._get_client", return_value=mock):
        assert await complete_tool("s", "q", {"name": "analysis"}) is None


async def test_bridge_delegates_to_complete():
    with patch("markbot.llm.client.complete", AsyncMock(return_value="ok")) as mock:
        assert await AIBridge().complete("s", "q") == "ok"
    mock.assert_awaited_once_with("s", "q")
