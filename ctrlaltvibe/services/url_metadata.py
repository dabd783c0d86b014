"""Derive title, description and preview image for a submitted project URL."""
import logging
from typing import Dict, Optional

import httpx
from bs4 import BeautifulSoup

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.cache_config import CACHE_KEY_TAGS, CACHE_TTL, url_metadata_key
from ctrlaltvibe.core.config import settings

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; CtrlAltVibeBot/1.0)"


def _meta_content(soup: BeautifulSoup, *names: str) -> Optional[str]:
    """First non-empty ``content`` among meta tags keyed by property or name."""
    for name in names:
        for attr in ("property", "name"):
            tag = soup.find("meta", attrs={attr: name})
            content = tag.get("content", "").strip() if tag else ""
            if content:
                return content
    return None


def parse_metadata(document: str) -> Dict[str, str]:
    soup = BeautifulSoup(document, "html.parser")
    result: Dict[str, str] = {}

    title = _meta_content(soup, "og:title") or (soup.title.get_text() if soup.title else "")
    if title.strip():
        result["title"] = " ".join(title.split())

    description = _meta_content(soup, "og:description", "description")
    if description:
        result["description"] = description

    image = _meta_content(soup, "og:image", "twitter:image")
    if image:
        result["image_url"] = image

    return result


class URLMetadataService:
    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else settings.EXTERNAL_REQUEST_TIMEOUT_SECONDS
        self._transport = transport

    async def fetch(self, url: str, cache: Optional[TaggedCache] = None) -> Dict[str, str]:
        """Returns an empty dict when the page cannot be fetched in time.

        With a cache, a readable page is remembered for a day and an
        unreadable one for an hour.
        """
        use_cache = cache is not None and settings.CACHE_ENABLED
        cache_key = url_metadata_key(url)
        if use_cache:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache HIT for key: {cache_key}")
                return cached

        metadata = await self._scrape(url)
        ttl = CACHE_TTL["url_metadata"]
        if metadata is None:
            metadata = {}
            ttl = CACHE_TTL["url_metadata_fallback"]

        if use_cache:
            cache.set(cache_key, metadata, ttl=ttl, tags=CACHE_KEY_TAGS["url_metadata"])
        return metadata

    async def _scrape(self, url: str) -> Optional[Dict[str, str]]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning(f"Timed out after {self.timeout}s fetching metadata for {url}")
            return None
        except httpx.HTTPStatusError as e:
            logger.warning(f"Metadata fetch for {url} returned {e.response.status_code}")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Metadata fetch for {url} failed: {e}")
            return None

        metadata = parse_metadata(response.text)
        logger.info(f"Extracted metadata for {url}: {sorted(metadata)}")
        return metadata

url_metadata_service = URLMetadataService()
