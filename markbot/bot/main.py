"""markbot entry point."""

import logging

from markbot.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the configured transport."""
    if not settings.supabase_enabled:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY missing; every lookup will fail")
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty; AI chat replies will be disabled")

    if settings.chat_platform == "telegram":
        from markbot.bot.telegram.app import create_app

        logger.info("Starting markbot on Telegram (polling) with model %s...", settings.chat_model)
        app = create_app()
        app.run_polling()
    else:
        from aiohttp import web

        from markbot.webhooks.server import _create_web_app

        logger.info("Starting markbot webhook server on port %d...", settings.webhook_port)
        web.run_app(_create_web_app(), port=settings.webhook_port, print=None)


if __name__ == "__main__":
    main()
