"""LLM provider contract shared by the classifier and the providers.

``ProviderHealth`` counts consecutive failures so a provider that keeps
failing during a batch can be skipped without another round trip.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

DEGRADED_AFTER_FAILURES = 3
UNAVAILABLE_AFTER_FAILURES = 5

HealthStatus = Literal["healthy", "degraded", "unavailable"]


@dataclass
class LLMResponse:
    """One completion returned by a provider.

    Token counts are 0 when the backend does not report them.
    """

    content: str
    model: str
    provider: str
    latency_ms: float
    input_tokens: int = 0
    output_tokens: int = 0
    timestamp: Optional[datetime] = None

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class ProviderHealth:
    """Request outcomes of one provider"""

    provider: str
    consecutive_failures: int = 0
    total_requests: int = 0
    total_failures: int = 0
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    failure_reason: Optional[str] = None

    @property
    def status(self) -> HealthStatus:
        if self.consecutive_failures >= UNAVAILABLE_AFTER_FAILURES:
            return "unavailable"
        if self.consecutive_failures >= DEGRADED_AFTER_FAILURES:
            return "degraded"
        return "healthy"

    @property
    def is_available(self) -> bool:
        return self.status != "unavailable"

    def record_success(self) -> None:
        self.total_requests += 1
        self.consecutive_failures = 0
        self.last_success = datetime.utcnow()

    def record_failure(self, reason: str) -> None:
        self.total_requests += 1
        self.total_failures += 1
        self.consecutive_failures += 1
        self.last_failure = datetime.utcnow()
        self.failure_reason = reason


class LLMProvider(ABC):
    """Text generation backend (``OllamaProvider``, ``GoogleProvider``)"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass  # pragma: no cover

    @property
    @abstractmethod
    def model(self) -> str:
        pass  # pragma: no cover

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        json_output: bool = False,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Complete ``prompt``.

        ``json_output`` asks the backend for a JSON document.

        Raises:
            LLMProviderError: Or one of its subclasses, on any failure
        """
        pass  # pragma: no cover

    def get_health(self) -> ProviderHealth:
        return ProviderHealth(provider=self.name)
