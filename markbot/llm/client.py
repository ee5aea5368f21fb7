"""Async Claude API client for the bookmark assistant.

Single-shot calls only: one system prompt, one user turn, no streaming and no
automatic retries. Failures are mapped onto ``AIBridgeError`` subclasses so
callers can pick a user-facing message per failure category.
"""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from markbot.config import settings

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


class AIBridgeError(Exception):
    """Base class for AI chat bridge failures."""


class AINotConfiguredError(AIBridgeError):
    """No API key is configured."""


class AIRateLimitedError(AIBridgeError):
    """The model API answered 429."""


class AIPaymentRequiredError(AIBridgeError):
    """The model API answered 402 (credits exhausted)."""


class AIUnavailableError(AIBridgeError):
    """Timeout, connection failure, or any other API error."""


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        if not settings.anthropic_api_key:
            msg = "ANTHROPIC_API_KEY is not set"
            raise AINotConfiguredError(msg)
        kwargs: dict[str, Any] = {
            "api_key": settings.anthropic_api_key,
            "timeout": settings.ai_timeout_seconds,
            "max_retries": 0,
        }
        if settings.anthropic_base_url:
            kwargs["base_url"] = settings.anthropic_base_url
        _client = anthropic.AsyncAnthropic(**kwargs)
    return _client


async def _create(**kwargs: Any) -> Any:
    """Call messages.create and translate SDK errors."""
    client = _get_client()
    try:
        return await client.messages.create(**kwargs)
    except anthropic.RateLimitError as exc:
        logger.warning("Model API rate limited: %s", exc)
        raise AIRateLimitedError(str(exc)) from exc
    except anthropic.APIStatusError as exc:
        logger.error("Model API error: status=%d body=%s", exc.status_code, str(exc)[:200])
        if exc.status_code == 402:
            raise AIPaymentRequiredError(str(exc)) from exc
        raise AIUnavailableError(str(exc)) from exc
    except (anthropic.APITimeoutError, anthropic.APIConnectionError) as exc:
        logger.warning("Model API unreachable: %s", exc)
        raise AIUnavailableError(str(exc)) from exc


async def complete(
    system_prompt: str,
    user_message: str,
    *,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Ask the model one question with a system prompt. Returns its text.

    Returns an empty string when the model produced no text block.
    """
    response = await _create(
        model=model or settings.chat_model,
        max_tokens=max_tokens or settings.ai_max_tokens,
        system=system_prompt,
        messages=[{"role": "user", "content": user_message}],
    )
    texts = [block.text for block in response.content if block.type == "text"]
    return "".join(texts).strip()


async def complete_tool(
    system_prompt: str,
    user_message: str,
    tool: dict[str, Any],
    *,
    model: str | None = None,
    max_tokens: int = 1024,
) -> dict[str, Any] | None:
    """Force a single tool call and return its input, or None if absent."""
    response = await _create(
        model=model or settings.chat_model,
        max_tokens=max_tokens,
        system=system_prompt,
        messages=[{"role": "user", "content": user_message}],
        tools=[tool],
        tool_choice={"type": "tool", "name": tool["name"]},
    )
    for block in response.content:
        if block.type == "tool_use" and block.name == tool["name"]:
            return dict(block.input)
    return None


class AIBridge:
    """Object wrapper around ``complete`` for injection into the dispatcher."""

    async def complete(self, system_prompt: str, user_message: str) -> str:
        return await complete(system_prompt, user_message)
