"""arXiv feed client.

Two endpoints of the export API are used:
- Atom query API (``/api/query``) for the newest submissions per category,
  parsed with feedparser
- OAI-PMH (``/oai2?verb=ListSets``) for the subject taxonomy

Every request goes through the injected ``ArxivRateLimiter``.
"""

import asyncio
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import aiohttp
import feedparser
import structlog

from src.models.config import ScoutConfig
from src.models.paper import ArxivCategory
from src.services.providers.base import FeedSource
from src.utils.arxiv_ids import as_list
from src.utils.exceptions import (
    MalformedEntryError,
    RateLimitError,
    SourceError,
    SourceUnavailableError,
)
from src.utils.rate_limiter import ArxivRateLimiter

logger = structlog.get_logger()

OAI_NS = {"oai": "http://www.openarchives.org/OAI/2.0/"}


@dataclass
class FeedEntry:
    """Normalized Atom entry"""

    entry_id: str
    title: str
    summary: str
    authors: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    pdf_url: Optional[str] = None
    published: Optional[datetime] = None
    updated: Optional[datetime] = None


def _to_datetime(parsed: Any) -> Optional[datetime]:
    if not parsed:
        return None
    return datetime(*parsed[:6])


def _collapse(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def parse_entry(raw: Mapping[str, Any]) -> FeedEntry:
    """Turn a feedparser entry into a ``FeedEntry``.

    Raises:
        MalformedEntryError: If the id or title is missing.
    """
    entry_id = raw.get("id")
    title = _collapse(raw.get("title"))
    if not entry_id:
        raise MalformedEntryError("Feed entry has no id")
    if not title:
        raise MalformedEntryError(f"Feed entry {entry_id} has no title")

    authors = [
        a.get("name") if isinstance(a, Mapping) else str(a)
        for a in as_list(raw.get("authors"))
    ]
    categories = [
        t.get("term") if isinstance(t, Mapping) else str(t)
        for t in as_list(raw.get("tags"))
    ]

    pdf_url = None
    for link in as_list(raw.get("links")):
        if isinstance(link, Mapping) and link.get("title") == "pdf":
            pdf_url = link.get("href")
            break

    return FeedEntry(
        entry_id=entry_id,
        title=title,
        summary=_collapse(raw.get("summary")),
        authors=[a for a in authors if a],
        categories=[c for c in categories if c],
        pdf_url=pdf_url,
        published=_to_datetime(raw.get("published_parsed")),
        updated=_to_datetime(raw.get("updated_parsed")),
    )


def parse_sets(xml_text: str, prefix: str) -> List[ArxivCategory]:
    """Extract OAI-PMH sets whose spec starts with ``prefix``.

    Raises:
        SourceError: If the document is not valid XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise SourceError(f"Invalid OAI-PMH response: {e}") from e

    categories = []
    for node in root.iterfind(".//oai:ListSets/oai:set", OAI_NS):
        spec = (node.findtext("oai:setSpec", default="", namespaces=OAI_NS)).strip()
        name = (node.findtext("oai:setName", default="", namespaces=OAI_NS)).strip()
        if spec.startswith(prefix):
            categories.append(ArxivCategory(id=spec, name=name or spec, description=""))
    return categories


class ArxivFeedClient(FeedSource):
    """Rate-limited client for the arXiv export API"""

    def __init__(
        self,
        limiter: ArxivRateLimiter,
        config: Optional[ScoutConfig] = None,
    ):
        self.limiter = limiter
        self.config = config or ScoutConfig()

    @property
    def name(self) -> str:
        return "arxiv"

    async def fetch_category_entries(
        self, category: str, max_results: int
    ) -> List[Mapping[str, Any]]:
        params = {
            "search_query": f"cat:{category}",
            "start": "0",
            "max_results": str(max_results),
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        text = await self.limiter.schedule(
            lambda: self._get_text(self.config.query_url, params),
            job_id=f"query:{category}",
        )

        # feedparser is blocking
        loop = asyncio.get_running_loop()
        feed = await loop.run_in_executor(None, feedparser.parse, text)

        if getattr(feed, "bozo", False):
            logger.warning(
                "arxiv_feed_parse_warning",
                category=category,
                error=str(getattr(feed, "bozo_exception", "")),
            )

        entries = list(feed.entries)
        logger.info("arxiv_feed_fetched", category=category, entries=len(entries))
        return entries

    async def fetch_sets(self) -> List[ArxivCategory]:
        text = await self.limiter.schedule(
            lambda: self._get_text(self.config.oai_url, {"verb": "ListSets"}),
            job_id="oai:ListSets",
        )
        categories = parse_sets(text, self.config.category_prefix)
        logger.info(
            "arxiv_sets_fetched",
            prefix=self.config.category_prefix,
            count=len(categories),
        )
        return categories

    async def _get_text(self, url: str, params: Dict[str, str]) -> str:
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params=params) as response:
                    if response.status == 429:
                        raise RateLimitError(
                            "arXiv rate limit exceeded (429)", status=429
                        )
                    if response.status == 503:
                        raise SourceUnavailableError(
                            "arXiv service unavailable (503)", status=503
                        )
                    if response.status != 200:
                        raise SourceError(
                            f"arXiv request failed: {response.status}",
                            status=response.status,
                        )
                    return await response.text()
        except asyncio.TimeoutError as e:
            logger.error("arxiv_timeout", url=url)
            raise SourceError(f"arXiv request timed out: {url}") from e
        except aiohttp.ClientError as e:
            logger.error("arxiv_network_error", url=url, error=str(e))
            raise SourceError(f"arXiv request failed: {e}") from e
