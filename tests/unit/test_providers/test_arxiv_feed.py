"""Tests for the arXiv feed client and its parsers."""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from src.models.config import ScoutConfig
from src.services.providers.arxiv import ArxivFeedClient, parse_entry, parse_sets
from src.utils.exceptions import (
    MalformedEntryError,
    RateLimitError,
    SourceError,
    SourceUnavailableError,
)

ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>ArXiv Query</title>
  <entry>
    <id>http://arxiv.org/abs/2401.12345v2</id>
    <updated>2024-01-16T10:00:00Z</updated>
    <published>2024-01-15T09:00:00Z</published>
    <title>Planning Agents
      with Tools</title>
    <summary>  We study tool use.
    </summary>
    <author><name>Ada Lovelace</name></author>
    <author><name>Alan Turing</name></author>
    <link href="http://arxiv.org/abs/2401.12345v2" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/2401.12345v2" rel="related" type="application/pdf"/>
    <category term="cs.AI" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
</feed>
"""

LIST_SETS = """<?xml version="1.0" encoding="UTF-8"?>
<OAI-PMH xmlns="http://www.openarchives.org/OAI/2.0/">
  <ListSets>
    <set><setSpec>cs</setSpec><setName>Computer Science</setName></set>
    <set><setSpec>cs:cs:AI</setSpec><setName>Artificial Intelligence</setName></set>
    <set><setSpec>math</setSpec><setName>Mathematics</setName></set>
  </ListSets>
</OAI-PMH>
"""


class FakeLimiter:
    """Runs scheduled tasks immediately."""

    def __init__(self):
        self.job_ids = []

    async def schedule(self, task, job_id=None):
        self.job_ids.append(job_id)
        return await task()


def mock_session(status=200, text=""):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    request = MagicMock()
    request.__aenter__.return_value = response
    request.__aexit__.return_value = False

    session = MagicMock()
    session.get.return_value = request

    session_cm = MagicMock()
    session_cm.__aenter__.return_value = session
    session_cm.__aexit__.return_value = False
    return session_cm, session


@pytest.fixture
def client():
    return ArxivFeedClient(FakeLimiter(), ScoutConfig())


class TestParseEntry:
    """Tests for parse_entry()."""

    def test_full_entry(self):
        """Fields are normalized from a feedparser entry."""
        parsed = parse_entry(
            {
                "id": "http://arxiv.org/abs/2401.12345v2",
                "title": "Planning\n   Agents",
                "summary": " text ",
                "authors": [{"name": "Ada"}, {"name": ""}],
                "tags": [{"term": "cs.AI"}],
                "links": [{"title": "pdf", "href": "http://arxiv.org/pdf/2401.12345v2"}],
            }
        )

        assert parsed.title == "Planning Agents"
        assert parsed.summary == "text"
        assert parsed.authors == ["Ada"]
        assert parsed.categories == ["cs.AI"]
        assert parsed.pdf_url == "http://arxiv.org/pdf/2401.12345v2"
        assert parsed.published is None

    def test_missing_optional_fields(self):
        """Absent lists become empty lists."""
        parsed = parse_entry({"id": "x", "title": "T"})
        assert parsed.authors == [] and parsed.categories == []

    @pytest.mark.parametrize("raw", [{"title": "T"}, {"id": "x", "title": ""}, {"id": "x"}])
    def test_malformed(self, raw):
        """Entries without id or title are rejected."""
        with pytest.raises(MalformedEntryError):
            parse_entry(raw)


class TestParseSets:
    """Tests for parse_sets()."""

    def test_prefix_filter(self):
        """Only sets under the prefix are returned."""
        categories = parse_sets(LIST_SETS, "cs")

        assert [c.id for c in categories] == ["cs", "cs:cs:AI"]
        assert categories[1].name == "Artificial Intelligence"

    def test_invalid_xml(self):
        """Broken XML is a source error."""
        with pytest.raises(SourceError):
            parse_sets("<OAI-PMH>", "cs")


class TestArxivFeedClient:
    """Tests for ArxivFeedClient."""

    @pytest.mark.asyncio
    async def test_fetch_category_entries(self, client):
        """The Atom feed is fetched through the limiter and parsed."""
        session_cm, session = mock_session(text=ATOM_FEED)

        with patch(
            "src.services.providers.arxiv.aiohttp.ClientSession",
            return_value=session_cm,
        ):
            entries = await client.fetch_category_entries("cs.AI", 5)

        params = session.get.call_args.kwargs["params"]
        assert params["search_query"] == "cat:cs.AI"
        assert params["max_results"] == "5"
        assert params["sortBy"] == "submittedDate"
        assert client.limiter.job_ids == ["query:cs.AI"]

        parsed = parse_entry(entries[0])
        assert parsed.entry_id == "http://arxiv.org/abs/2401.12345v2"
        assert parsed.title == "Planning Agents with Tools"
        assert parsed.authors == ["Ada Lovelace", "Alan Turing"]
        assert parsed.categories == ["cs.AI", "cs.CL"]
        assert parsed.pdf_url == "http://arxiv.org/pdf/2401.12345v2"
        assert parsed.published.day == 15

    @pytest.mark.asyncio
    async def test_fetch_sets(self, client):
        """ListSets goes to the OAI endpoint."""
        session_cm, session = mock_session(text=LIST_SETS)

        with patch(
            "src.services.providers.arxiv.aiohttp.ClientSession",
            return_value=session_cm,
        ):
            categories = await client.fetch_sets()

        assert session.get.call_args.kwargs["params"] == {"verb": "ListSets"}
        assert len(categories) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error",
        [(429, RateLimitError), (503, SourceUnavailableError), (500, SourceError)],
    )
    async def test_status_mapping(self, client, status, error):
        """HTTP failures map onto typed source errors."""
        session_cm, _ = mock_session(status=status)

        with patch(
            "src.services.providers.arxiv.aiohttp.ClientSession",
            return_value=session_cm,
        ):
            with pytest.raises(error) as exc_info:
                await client.fetch_sets()

        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_network_error(self, client):
        """Connection failures become SourceError."""
        session_cm, session = mock_session()
        session.get.side_effect = aiohttp.ClientConnectionError("refused")

        with patch(
            "src.services.providers.arxiv.aiohttp.ClientSession",
            return_value=session_cm,
        ):
            with pytest.raises(SourceError, match="refused"):
                await client.fetch_sets()
