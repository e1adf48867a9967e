"""Zero-shot topic / facet classification.

Two strategies share one interface: an LLM classifier and a keyword
classifier. ``FallbackClassifier`` tries the first and degrades to the
second, recording which one answered.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, Optional, Pattern, Tuple

import structlog

from src.models.paper import Classification, Paper
from src.observability.metrics import CLASSIFIER_FALLBACKS
from src.services.llm.exceptions import ProviderUnavailableError
from src.services.llm.providers.base import LLMProvider
from src.services.llm.response_parser import ResponseParser

logger = structlog.get_logger()

TOPIC_VOCABULARY: Dict[str, str] = {
    "agents": "Papers about AI agents or agentic systems",
    "rag": "Retrieval-augmented generation",
    "multimodal": "Multimodal language models (vision, audio, etc.)",
    "architectures": "Novel model architectures",
    "surveys": "Survey or review papers",
    "applications": "Real-world applications",
}

FACET_VOCABULARY: Dict[str, str] = {
    "planning": "Planning and reasoning",
    "memory": "Memory systems",
    "tool_use": "Tool use and function calling",
    "evaluation": "Evaluation methods or benchmarks",
    "safety": "AI safety and alignment",
    "protocols": "Interaction protocols",
}

TOPIC_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("agents", re.compile(r"agent|agentic", re.IGNORECASE)),
    ("rag", re.compile(r"rag|retrieval.?augmented", re.IGNORECASE)),
    ("multimodal", re.compile(r"multimodal|vision|audio", re.IGNORECASE)),
    ("architectures", re.compile(r"architecture|transformer|attention", re.IGNORECASE)),
    ("surveys", re.compile(r"survey|review", re.IGNORECASE)),
    ("applications", re.compile(r"application|real.?world", re.IGNORECASE)),
)

FACET_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("planning", re.compile(r"planning|plan|reasoning", re.IGNORECASE)),
    ("memory", re.compile(r"memory", re.IGNORECASE)),
    ("tool_use", re.compile(r"tool|function.?calling", re.IGNORECASE)),
    ("evaluation", re.compile(r"evaluation|benchmark", re.IGNORECASE)),
    ("safety", re.compile(r"safety|alignment", re.IGNORECASE)),
    ("protocols", re.compile(r"protocol|interaction", re.IGNORECASE)),
)


def build_classification_prompt(paper: Paper) -> str:
    topics = "\n".join(f"- {k}: {v}" for k, v in TOPIC_VOCABULARY.items())
    facets = "\n".join(f"- {k}: {v}" for k, v in FACET_VOCABULARY.items())
    return (
        "Classify this research paper into relevant topics and facets.\n\n"
        f"Title: {paper.title}\n"
        f"Abstract: {paper.abstract}\n\n"
        f"Topics (select all that apply):\n{topics}\n\n"
        f"Facets (select all that apply):\n{facets}\n\n"
        "Output ONLY valid JSON in this exact format:\n"
        '{"topics": ["...", "..."], "facets": ["...", "..."]}'
    )


class Classifier(ABC):
    """Assigns topics and facets to a paper"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def classify(self, paper: Paper) -> Classification:
        pass


class KeywordClassifier(Classifier):
    """Regex matching over title and abstract"""

    @property
    def name(self) -> str:
        return "keyword"

    async def classify(self, paper: Paper) -> Classification:
        text = f"{paper.title} {paper.abstract}"
        return Classification(
            topics=[label for label, p in TOPIC_PATTERNS if p.search(text)],
            facets=[label for label, p in FACET_PATTERNS if p.search(text)],
        )


class LLMClassifier(Classifier):
    """JSON-mode prompt against an LLM provider"""

    def __init__(self, provider: LLMProvider, parser: Optional[ResponseParser] = None):
        self.provider = provider
        self.parser = parser or ResponseParser()

    @property
    def name(self) -> str:
        return f"llm:{self.provider.name}"

    async def classify(self, paper: Paper) -> Classification:
        """Classify with the LLM.

        A provider whose health is ``unavailable`` is not called.

        Raises:
            LLMProviderError: If the provider call fails or is skipped
            ClassificationError: If the response cannot be parsed
        """
        if not self.provider.get_health().is_available:
            raise ProviderUnavailableError(
                "Provider marked unavailable after repeated failures",
                provider=self.provider.name,
            )

        response = await self.provider.generate(
            build_classification_prompt(paper), json_output=True
        )
        return self.parser.parse_classification(
            response, TOPIC_VOCABULARY.keys(), FACET_VOCABULARY.keys()
        )


class FallbackClassifier(Classifier):
    """Primary strategy with a fallback on any primary failure

    ``last_used`` holds the name of the strategy that produced the most
    recent result.
    """

    def __init__(self, primary: Classifier, fallback: Classifier):
        self.primary = primary
        self.fallback = fallback
        self.last_used: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.primary.name}+{self.fallback.name}"

    async def classify(self, paper: Paper) -> Classification:
        result, used = await self.classify_with_source(paper)
        self.last_used = used
        return result

    async def classify_with_source(self, paper: Paper) -> Tuple[Classification, str]:
        """Classify and report which strategy answered."""
        try:
            return await self.primary.classify(paper), self.primary.name
        except Exception as e:
            CLASSIFIER_FALLBACKS.inc()
            logger.warning(
                "classifier_fallback",
                arxiv_id=paper.arxiv_id,
                primary=self.primary.name,
                error=str(e),
            )
        return await self.fallback.classify(paper), self.fallback.name

