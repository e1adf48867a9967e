"""Exception hierarchy for the curation pipeline.

Errors fall into four families:
- Transient external failures (feed unreachable, provider timeout, throttling)
- Malformed input (bad identifiers, broken feed entries, unparseable
  classifier output)
- Data-integrity violations (vector dimension mismatch, missing profile)
- Configuration failures (missing credentials)

All exceptions inherit from CuratorError so callers can catch everything
raised by the pipeline in a single except block:
```python
try:
    await ranker.rank_papers(papers, profile, run_id)
except CuratorError as e:
    logger.error("ranking_failed", error=str(e))
```
"""

from typing import Dict, List, Optional


class CuratorError(Exception):
    """Base exception for all curation pipeline errors"""

    pass


# Transient external failures


class SourceError(CuratorError):
    """arXiv source request failed

    Raised when:
    - HTTP request fails (non-2xx status)
    - Network timeout or connection error
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class SourceUnavailableError(SourceError):
    """arXiv answered 503 (service unavailable, usually throttling)"""

    pass


class RateLimitError(SourceError):
    """arXiv answered 429 / 403 because we exceeded its request budget"""

    pass


class PartialIngestionError(SourceError):
    """Some category feeds failed while others were ingested

    Attributes:
        arxiv_ids: Papers created or updated from the categories that worked
        failures: Category to error message for the categories that failed
    """

    def __init__(self, arxiv_ids: List[str], failures: Dict[str, str]) -> None:
        super().__init__(f"Category feeds failed: {', '.join(sorted(failures))}")
        self.arxiv_ids = arxiv_ids
        self.failures = failures


class EmbeddingError(CuratorError):
    """Embedding provider call failed or returned an unusable vector"""

    pass


# Malformed input


class InvalidArxivIdError(CuratorError, ValueError):
    """Identifier matched neither the modern nor the legacy arXiv form"""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid arXiv identifier: {value}")
        self.value = value


class MalformedEntryError(CuratorError):
    """Feed entry is missing a required field"""

    pass


class ClassificationError(CuratorError):
    """Classifier output could not be turned into topics and facets

    Raised when:
    - LLM response is not valid JSON
    - JSON structure doesn't carry topic/facet lists
    """

    pass


class SummaryError(CuratorError):
    """Summarizer output is not a JSON object with whats_new and key_points"""

    pass


# Data-integrity violations


class DimensionMismatchError(CuratorError, ValueError):
    """Two vectors that must be combined have different lengths"""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Vector dimension mismatch: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class ProfileNotFoundError(CuratorError, LookupError):
    """No user profile stored for the requested user"""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User profile not found for user {user_id}")
        self.user_id = user_id


class PaperNotFoundError(CuratorError, LookupError):
    """No paper stored under the requested arXiv id"""

    def __init__(self, arxiv_id: str) -> None:
        super().__init__(f"Paper {arxiv_id} not found")
        self.arxiv_id = arxiv_id


class BriefingNotFoundError(CuratorError, LookupError):
    """No briefing stored for the requested user and date"""

    pass


# Configuration


class ConfigurationError(CuratorError):
    """Required configuration (credentials, endpoints) is missing or invalid

    Never recovered from by substituting placeholder output.
    """

    pass


# Lifecycle


class RateLimiterStoppedError(CuratorError):
    """A task was scheduled on a limiter that is not running"""

    pass
