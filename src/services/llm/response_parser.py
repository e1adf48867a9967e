"""Response Parser Module

Turns raw LLM responses into a ``Classification`` or a skim summary:
- Extracting JSON from LLM responses (handling code blocks)
- Validating the response structure
- Dropping labels outside the closed vocabularies
"""

import json
from typing import Any, Dict, Iterable, List, Tuple, Type

import structlog

from src.models.paper import Classification
from src.utils.exceptions import ClassificationError, CuratorError, SummaryError

logger = structlog.get_logger()


class ResponseParser:
    """Parses LLM classification responses."""

    def parse_classification(
        self,
        response: Any,
        topic_vocabulary: Iterable[str],
        facet_vocabulary: Iterable[str],
    ) -> Classification:
        """Parse an LLM response into a vocabulary-checked classification.

        Args:
            response: LLMResponse or raw text
            topic_vocabulary: Allowed topic labels
            facet_vocabulary: Allowed facet labels

        Raises:
            ClassificationError: If the response is not a JSON object with
                list-valued ``topics`` / ``facets``
        """
        content = self._extract_content(response)
        data = self._parse_json(self._clean_json_content(content))

        topics = self._filter_labels(data, "topics", topic_vocabulary)
        facets = self._filter_labels(data, "facets", facet_vocabulary)

        logger.debug("classification_parsed", topics=topics, facets=facets)
        return Classification(topics=topics, facets=facets)

    def parse_summary(self, response: Any) -> Tuple[str, List[str]]:
        """Parse a skim response into ``(whats_new, key_points)``.

        Raises:
            SummaryError: If ``whats_new`` is not a non-empty string or
                ``key_points`` is not a list of strings
        """
        content = self._extract_content(response)
        data = self._parse_json(self._clean_json_content(content), SummaryError)

        whats_new = data.get("whats_new")
        if not isinstance(whats_new, str) or not whats_new.strip():
            raise SummaryError("'whats_new' must be a non-empty string")

        raw_points = data.get("key_points")
        if not isinstance(raw_points, list):
            raise SummaryError("'key_points' must be a list")
        key_points = [
            p.strip() for p in raw_points if isinstance(p, str) and p.strip()
        ]

        return whats_new.strip(), key_points

    def _extract_content(self, response: Any) -> str:
        if isinstance(response, str):
            return response
        if hasattr(response, "content") and isinstance(response.content, str):
            return response.content
        return ""

    def _clean_json_content(self, content: str) -> str:
        """Clean JSON content by removing code block markers."""
        content = content.strip()

        if content.startswith("```json"):
            content = content[7:]
        elif content.startswith("```"):
            content = content[3:]

        if content.endswith("```"):
            content = content[:-3]

        return content.strip()

    def _parse_json(
        self, content: str, error: Type[CuratorError] = ClassificationError
    ) -> Dict[str, Any]:
        try:
            result = json.loads(content)
        except json.JSONDecodeError as e:
            raise error(
                f"Invalid JSON in LLM response: {e}\nContent: {content[:500]}"
            )
        if not isinstance(result, dict):
            raise error("LLM response must be a JSON object")
        return result

    def _filter_labels(
        self,
        data: Dict[str, Any],
        key: str,
        vocabulary: Iterable[str],
    ) -> List[str]:
        raw = data.get(key, [])
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ClassificationError(f"'{key}' must be a list")

        allowed = set(vocabulary)
        labels: List[str] = []
        for label in raw:
            if not isinstance(label, str):
                continue
            normalized = label.strip().lower()
            if normalized in allowed and normalized not in labels:
                labels.append(normalized)
            elif normalized not in allowed:
                logger.debug("classification_label_dropped", key=key, label=label)
        return labels
