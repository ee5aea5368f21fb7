"""WhatsApp Cloud API implementation of the DeliveryChannel protocol."""

from __future__ import annotations

import logging

import httpx

from markbot.config import settings

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com/v17.0/{phone_number_id}/messages"

# WhatsApp rejects text bodies over 4096 characters.
MAX_WHATSAPP_LENGTH = 4096


class WhatsAppChannel:
    """Sends text messages through the WhatsApp Business Graph API."""

    def __init__(
        self,
        access_token: str | None = None,
        phone_number_id: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._access_token = (
            access_token if access_token is not None else settings.whatsapp_access_token
        )
        self._phone_number_id = (
            phone_number_id if phone_number_id is not None else settings.whatsapp_phone_number_id
        )
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "whatsapp"

    async def send(self, to: str, message: str) -> bool:
        """Send a text message. Returns True on success."""
        if not self._access_token or not self._phone_number_id:
            logger.error(
                "WhatsApp not configured; missing WHATSAPP_ACCESS_TOKEN or WHATSAPP_PHONE_NUMBER_ID"
            )
            return False

        if len(message) > MAX_WHATSAPP_LENGTH:
            message = message[: MAX_WHATSAPP_LENGTH - 3] + "..."

        payload = {
            "messaging_product": "whatsapp",
            "to": to.lstrip("+"),
            "type": "text",
            "text": {"body": message},
        }
        url = GRAPH_API_URL.format(phone_number_id=self._phone_number_id)
        headers = {"Authorization": f"Bearer {self._access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError:
            logger.exception("WhatsApp send failed (network error) to=%s", to)
            return False

        if resp.status_code != 200:
            logger.error(
                "WhatsApp send failed: status=%d body=%s", resp.status_code, resp.text[:200]
            )
            return False

        logger.info("WhatsApp message sent to %s (%d chars)", to, len(message))
        return True
