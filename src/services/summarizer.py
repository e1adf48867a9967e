"""Summarizer: LLM skim summaries of papers.

A summary is cached per paper and keyed by the SHA-256 of the abstract, so
an unchanged abstract never reaches the LLM twice. The provider follows the
requesting user's ``use_local_llm`` preference.
"""

import datetime as dt
import hashlib
from typing import Callable, List, Optional

import structlog

from src.models.config import CuratorConfig
from src.models.paper import Paper
from src.models.summary import SKIM_SUMMARY, Summary
from src.observability.metrics import SUMMARIES_GENERATED
from src.services.llm.exceptions import ProviderUnavailableError
from src.services.llm.providers.base import LLMProvider
from src.services.llm.providers.google import GoogleProvider
from src.services.llm.providers.ollama import OllamaProvider
from src.services.llm.response_parser import ResponseParser
from src.services.store import PaperStore
from src.utils.concurrency import BulkResult, gather_bounded
from src.utils.exceptions import (
    BriefingNotFoundError,
    PaperNotFoundError,
    ProfileNotFoundError,
    SummaryError,
)

logger = structlog.get_logger()

SUMMARY_CONCURRENCY = 3
SUMMARY_TEMPERATURE = 0.3

SUMMARY_SYSTEM_PROMPT = (
    "You are a research assistant that writes skim summaries of papers.\n"
    "Write a \"What's New\" of 2-3 sentences on the novel contribution, then "
    "3-5 key points covering method, results and limitations.\n"
    "Output ONLY valid JSON in this exact format:\n"
    '{"whats_new": "...", "key_points": ["...", "..."]}'
)


def content_hash(abstract: str) -> str:
    return hashlib.sha256(abstract.encode("utf-8")).hexdigest()


def build_summary_prompt(paper: Paper) -> str:
    return (
        f"{SUMMARY_SYSTEM_PROMPT}\n\n"
        f"Title: {paper.title}\n"
        f"Authors: {', '.join(paper.authors)}\n"
        f"Abstract: {paper.abstract}"
    )


def format_markdown(whats_new: str, key_points: List[str]) -> str:
    points = "\n".join(f"- {point}" for point in key_points)
    return f"## What's New\n\n{whats_new}\n\n## Key Points\n\n{points}"


class Summarizer:
    """Generates and caches skim summaries"""

    def __init__(
        self,
        store: PaperStore,
        local_provider: LLMProvider,
        cloud_provider_factory: Optional[Callable[[], LLMProvider]] = None,
        parser: Optional[ResponseParser] = None,
        concurrency: int = SUMMARY_CONCURRENCY,
    ):
        self.store = store
        self.local_provider = local_provider
        self._cloud_provider_factory = cloud_provider_factory
        self._cloud_provider: Optional[LLMProvider] = None
        self.parser = parser or ResponseParser()
        self.concurrency = concurrency

    @classmethod
    def from_config(cls, store: PaperStore, config: CuratorConfig) -> "Summarizer":
        enrichment = config.enrichment
        providers = config.providers

        def cloud() -> LLMProvider:
            return GoogleProvider(
                api_key=providers.google_api_key,
                model=enrichment.cloud_llm_model,
            )

        return cls(
            store=store,
            local_provider=OllamaProvider(
                base_url=providers.ollama_base_url,
                model=enrichment.local_llm_model,
                timeout_seconds=providers.request_timeout_seconds,
            ),
            cloud_provider_factory=cloud,
        )

    def _provider(self, use_local_llm: bool) -> LLMProvider:
        if use_local_llm or self._cloud_provider_factory is None:
            return self.local_provider
        if self._cloud_provider is None:
            self._cloud_provider = self._cloud_provider_factory()
        return self._cloud_provider

    async def generate_summary(self, arxiv_id: str, user_id: str) -> Summary:
        """Return the skim summary of a paper, generating it on a cache miss.

        Raises:
            PaperNotFoundError: If the paper is not stored
            ProfileNotFoundError: If the user has no profile
            LLMProviderError: If the provider call fails or is skipped
            SummaryError: If the response cannot be parsed
        """
        paper = await self.store.get_paper(arxiv_id)
        if paper is None:
            raise PaperNotFoundError(arxiv_id)
        profile = await self.store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        digest = content_hash(paper.abstract)
        cached = await self.store.get_summary(arxiv_id, SKIM_SUMMARY)
        if cached is not None and cached.content_hash == digest:
            SUMMARIES_GENERATED.labels(outcome="cached").inc()
            logger.debug("summary_cache_hit", arxiv_id=arxiv_id)
            return cached

        provider = self._provider(profile.use_local_llm)
        try:
            if not provider.get_health().is_available:
                raise ProviderUnavailableError(
                    "Provider marked unavailable after repeated failures",
                    provider=provider.name,
                )
            response = await provider.generate(
                build_summary_prompt(paper),
                json_output=True,
                temperature=SUMMARY_TEMPERATURE,
            )
            whats_new, key_points = self.parser.parse_summary(response)
        except Exception as e:
            SUMMARIES_GENERATED.labels(outcome="failed").inc()
            logger.warning(
                "summary_failed",
                arxiv_id=arxiv_id,
                provider=provider.name,
                error=str(e),
            )
            raise

        summary = Summary(
            arxiv_id=arxiv_id,
            whats_new=whats_new,
            key_points=key_points,
            markdown_content=format_markdown(whats_new, key_points),
            content_hash=digest,
        )
        await self.store.upsert_summary(summary)
        SUMMARIES_GENERATED.labels(outcome="generated").inc()
        logger.info(
            "summary_generated",
            arxiv_id=arxiv_id,
            provider=provider.name,
            key_points=len(key_points),
        )
        return summary

    async def summarize_briefing(self, user_id: str, date: dt.date) -> BulkResult:
        """Summarize every paper in a user's briefing for ``date``.

        A failing paper is counted in ``failed`` and never stops the others;
        each entry of ``errors`` is prefixed with the paper id.

        Raises:
            BriefingNotFoundError: If no briefing exists for the day
        """
        briefing = await self.store.get_briefing(user_id, date)
        if briefing is None:
            raise BriefingNotFoundError(
                f"No briefing for user {user_id} on {date.isoformat()}"
            )
        if not briefing.paper_ids:
            return BulkResult()

        async def _summarize(arxiv_id: str) -> Summary:
            try:
                return await self.generate_summary(arxiv_id, user_id)
            except Exception as e:
                raise SummaryError(f"{arxiv_id}: {e}") from e

        result = await gather_bounded(
            [lambda a=a: _summarize(a) for a in briefing.paper_ids],
            concurrency=self.concurrency,
        )
        logger.info(
            "briefing_summarized",
            user_id=user_id,
            date=date.isoformat(),
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result
