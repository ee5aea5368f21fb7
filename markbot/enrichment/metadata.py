"""Best-effort link metadata: title, description and tags for a URL."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field

import httpx
import trafilatura
from bs4 import BeautifulSoup

from markbot.config import settings

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "markbot/1.0 (Bookmark Metadata Fetcher)"
MAX_DOWNLOAD_BYTES = 2 * 1024 * 1024  # 2 MB
MAX_TAGS = 5

_TAG_CLEAN = re.compile(r"[^a-z0-9+#.-]+")


@dataclass
class LinkMetadata:
    """Metadata scraped from a page. Any field may be empty."""

    title: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)


def _is_html(content_type: str) -> bool:
    ct = content_type.lower().split(";")[0].strip()
    return ct in ("text/html", "application/xhtml+xml")


def _normalize_tag(raw: str) -> str:
    return _TAG_CLEAN.sub("-", raw.strip().lower()).strip("-")


def _keyword_tags(html: str) -> list[str]:
    """Tags from ``<meta name="keywords">`` and ``article:tag`` properties."""
    soup = BeautifulSoup(html, "html.parser")
    raw: list[str] = []

    keywords = soup.find("meta", attrs={"name": "keywords"})
    if keywords and keywords.get("content"):
        raw.extend(keywords["content"].split(","))

    for meta in soup.find_all("meta", attrs={"property": "article:tag"}):
        if meta.get("content"):
            raw.append(meta["content"])

    return raw


def parse_metadata(html: str) -> LinkMetadata:
    """Extract title, description and tags from an HTML document."""
    meta = trafilatura.extract_metadata(html)
    title = meta.title if meta and meta.title else None
    description = meta.description if meta and meta.description else None

    raw_tags: list[str] = []
    if meta:
        # trafilatura keeps comma-joined keyword strings as single entries
        for value in [*(meta.tags or []), *(meta.categories or [])]:
            raw_tags.extend(value.split(","))
    raw_tags.extend(_keyword_tags(html))

    tags: list[str] = []
    for raw in raw_tags:
        tag = _normalize_tag(raw)
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) >= MAX_TAGS:
            break

    return LinkMetadata(title=title, description=description, tags=tags)


class MetadataFetcher:
    """Fetches a page and extracts its metadata. Never raises."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.metadata_timeout_seconds

    async def fetch(self, url: str) -> LinkMetadata:
        """Return whatever metadata could be found; empty on any failure.

        ``timeout`` bounds the whole fetch, not each network phase, and the
        body is streamed so oversized pages are abandoned at the size limit.
        """
        try:
            html = await asyncio.wait_for(self._download(url), self.timeout)
        except TimeoutError:
            logger.info("Metadata fetch timed out after %.1fs for %s", self.timeout, url)
            return LinkMetadata()
        except httpx.HTTPError:
            logger.info("Metadata fetch failed for %s", url, exc_info=True)
            return LinkMetadata()

        if html is None:
            return LinkMetadata()

        try:
            # trafilatura and bs4 are CPU-bound and synchronous
            return await asyncio.to_thread(parse_metadata, html)
        except Exception:
            logger.warning("Metadata parse failed for %s", url, exc_info=True)
            return LinkMetadata()

    async def _download(self, url: str) -> str | None:
        """Stream an HTML page. None for non-200, non-HTML or oversized responses."""
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            max_redirects=5,
        ) as client:
            async with client.stream("GET", url) as resp:
                if resp.status_code != 200:
                    logger.info("Metadata fetch: HTTP %d for %s", resp.status_code, url)
                    return None

                if not _is_html(resp.headers.get("content-type", "")):
                    return None

                body = bytearray()
                async for chunk in resp.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > MAX_DOWNLOAD_BYTES:
                        logger.info("Metadata fetch: page too large %s", url)
                        return None

                return bytes(body).decode(resp.encoding or "utf-8", errors="replace")
