"""Shared Supabase client and async helpers.

The ``supabase`` Python client is synchronous. Queries are built on the
calling side and executed with ``asyncio.to_thread()`` so they never block the
event loop, bounded by ``settings.store_timeout_seconds``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from markbot.config import settings

logger = logging.getLogger(__name__)

_client: Client | None = None


class BookmarkStoreError(Exception):
    """A Supabase query failed, timed out, or the store is not configured."""


def get_client() -> Client:
    """Lazily initialize the service-role Supabase client."""
    global _client  # noqa: PLW0603
    if _client is None:
        if not settings.supabase_enabled:
            msg = "Supabase is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)"
            raise BookmarkStoreError(msg)
        _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    return _client


async def run_query(query: Any, *, timeout: float | None = None) -> list[dict[str, Any]]:
    """Execute a PostgREST query builder off the event loop and return its rows.

    Raises:
        BookmarkStoreError: on API errors, transport errors, or timeout.
    """
    limit = timeout if timeout is not None else settings.store_timeout_seconds
    try:
        response = await asyncio.wait_for(asyncio.to_thread(query.execute), timeout=limit)
    except TimeoutError as exc:
        msg = f"Supabase query timed out after {limit}s"
        raise BookmarkStoreError(msg) from exc
    except APIError as exc:
        msg = f"Supabase API error: {exc.message}"
        raise BookmarkStoreError(msg) from exc
    except httpx.HTTPError as exc:
        msg = f"Supabase request failed: {exc}"
        raise BookmarkStoreError(msg) from exc

    data = response.data
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)
