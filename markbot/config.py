"""Application settings loaded from environment variables."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """markbot configuration. All values come from environment variables."""

    # Transport: "webhook" (HTTP only) or "telegram" (polling + HTTP)
    chat_platform: str = Field(default="webhook")

    # Telegram
    telegram_bot_token: str = Field(default="")

    # Supabase
    supabase_url: str = Field(default="")
    supabase_service_role_key: str = Field(default="")
    store_timeout_seconds: float = Field(default=5.0)

    # Anthropic (or a compatible gateway via anthropic_base_url)
    anthropic_api_key: str = Field(default="")
    anthropic_base_url: str = Field(default="")
    chat_model: str = Field(default="claude-haiku-4-5-20251001")
    ai_max_tokens: int = Field(default=500)
    ai_timeout_seconds: float = Field(default=8.0)

    # Link metadata enrichment
    metadata_timeout_seconds: float = Field(default=5.0)

    # Rate limiting (fixed window, per user)
    rate_limit_window_seconds: float = Field(default=60.0)
    rate_limit_max_requests: int = Field(default=60)
    rate_limit_max_entries: int = Field(default=10_000)

    # Inbound messages
    max_message_length: int = Field(default=1000)

    # Webhooks
    webhook_port: int = Field(default=8443)
    webhook_secret: str = Field(default="")

    # WhatsApp Cloud API
    whatsapp_access_token: str = Field(default="")
    whatsapp_phone_number_id: str = Field(default="")
    whatsapp_verify_token: str = Field(default="")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def whatsapp_enabled(self) -> bool:
        return bool(self.whatsapp_access_token and self.whatsapp_phone_number_id)


settings = Settings()
