"""Inbound webhook payload models and normalization."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from markbot.chat.service import ChatMessage


class ChatRequest(BaseModel):
    """Standard chat webhook body.

    ``message`` length is checked by the chat service so an over-long message
    gets a descriptive reply rather than a validation error.
    """

    message: str
    phone: str | None = Field(default=None, max_length=32)
    telegram_id: str | None = Field(default=None, max_length=64)

    @field_validator("phone", "telegram_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        # Relays often send numeric Telegram IDs
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_message(self) -> ChatMessage:
        return ChatMessage(body=self.message, phone=self.phone, telegram_id=self.telegram_id)


def _native_sender(message: dict[str, Any]) -> str | None:
    """Telegram sender ID from ``from.id``, falling back to ``chat.id``."""
    for key in ("from", "chat"):
        part = message.get(key)
        if isinstance(part, dict) and part.get("id") is not None:
            return str(part["id"])
    return None


def normalize_chat_payload(payload: Any) -> ChatRequest:
    """Accept either the standard shape or a Telegram-native update.

    The native shape ``{"message": {"text", "from": {"id"}, "chat": {"id"}}}``
    is mapped onto ``telegram_id``.

    Raises:
        ValidationError: if the payload matches neither shape.
        ValueError: if the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        msg = "payload must be a JSON object"
        raise ValueError(msg)

    inner = payload.get("message")
    if isinstance(inner, dict) and "text" in inner:
        return ChatRequest(
            message=str(inner.get("text") or ""),
            telegram_id=_native_sender(inner),
        )

    return ChatRequest.model_validate(payload)


def extract_whatsapp_message(payload: dict[str, Any]) -> tuple[str, str] | None:
    """Return ``(phone, text)`` from a WhatsApp Cloud API webhook, if present."""
    try:
        value = payload["entry"][0]["changes"][0]["value"]
        message = value["messages"][0]
    except (KeyError, IndexError, TypeError):
        return None

    if not isinstance(message, dict):
        return None
    phone = message.get("from")
    text_part = message.get("text")
    text = text_part.get("body") if isinstance(text_part, dict) else None
    if not phone or not text:
        return None
    return str(phone), str(text)

