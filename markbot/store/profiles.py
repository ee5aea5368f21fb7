"""ProfileStore: resolves chat senders to bookmark-owner user IDs."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from markbot.store.client import get_client, run_query

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)


class ProfileStore:
    """Looks up ``profiles.user_id`` by Telegram ID or phone number.

    Profiles are created from the dashboard settings page; this class only
    reads them.
    """

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def _lookup(self, column: str, value: str) -> str | None:
        rows = await run_query(
            self.client.table("profiles").select("user_id").eq(column, value).limit(1)
        )
        if not rows:
            return None
        return str(rows[0]["user_id"])

    async def resolve(
        self,
        *,
        phone: str | None = None,
        telegram_id: str | None = None,
    ) -> str | None:
        """Return the user ID for a sender, or None if unregistered.

        The Telegram ID is tried before the phone number. Relays that only
        know one identifier send it as *phone*, so a lone *phone* is also
        matched against ``telegram_id`` first. Raises ``BookmarkStoreError``
        if the lookup itself fails.
        """
        platform_id = telegram_id or phone
        if platform_id:
            user_id = await self._lookup("telegram_id", platform_id)
            if user_id:
                return user_id
        if phone:
            user_id = await self._lookup("phone_number", phone)
            if user_id:
                return user_id
        logger.info("Sender not registered: telegram_id=%s phone=%s", telegram_id, phone)
        return None

    async def user_from_token(self, access_token: str) -> str | None:
        """Resolve a Supabase Auth access token to its user ID."""
        try:
            response = await asyncio.to_thread(self.client.auth.get_user, access_token)
        except Exception:
            logger.warning("Access token rejected by Supabase Auth", exc_info=True)
            return None
        if response is None or response.user is None:
            return None
        return str(response.user.id)
