"""Configuration models for the curation pipeline.

Every tunable constant of the pipeline (limiter timings, ranking weights,
exploration scale, provider endpoints) lives here so it can be retuned from
YAML without touching the scoring code.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.profile import UserProfile


class RateLimiterConfig(BaseModel):
    """arXiv request throttling

    arXiv's terms of use ask for at most one request every three seconds over
    a single connection.
    """

    min_interval_seconds: float = Field(default=3.0, ge=0.0)
    reservoir_size: int = Field(default=20, ge=1)
    reservoir_refresh_seconds: float = Field(default=60.0, gt=0.0)
    max_retries: int = Field(default=3, ge=0, le=10)
    rate_limit_base_delay_seconds: float = Field(default=10.0, ge=0.0)
    rate_limit_max_delay_seconds: float = Field(default=60.0, ge=0.0)
    retry_delay_seconds: float = Field(default=5.0, ge=0.0)


class RankingWeights(BaseModel):
    """Weights of the final score formula

    final = N*novelty + E*evidence + V*velocity + P*personal_fit
            + L*lab_prior - M*math_penalty
    """

    novelty: float = Field(default=0.20, ge=0.0, le=1.0)
    evidence: float = Field(default=0.25, ge=0.0, le=1.0)
    velocity: float = Field(default=0.10, ge=0.0, le=1.0)
    personal_fit: float = Field(default=0.30, ge=0.0, le=1.0)
    lab_prior: float = Field(default=0.10, ge=0.0, le=1.0)
    math_penalty: float = Field(default=0.05, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_weight_total(self) -> "RankingWeights":
        total = (
            self.novelty
            + self.evidence
            + self.velocity
            + self.personal_fit
            + self.lab_prior
            + self.math_penalty
        )
        if not (0.99 <= total <= 1.01):
            raise ValueError(f"Signal weights must sum to 1.0, got {total}")
        return self


class ExplorationConfig(BaseModel):
    """Seeded exploration bonus added on top of the weighted score

    bonus = exploration_rate * scale * novelty * u,  u in [0, 1)
    """

    scale: float = Field(default=0.1, ge=0.0, le=1.0)


class ScoutConfig(BaseModel):
    """arXiv ingestion settings"""

    query_url: str = "http://export.arxiv.org/api/query"
    oai_url: str = "http://export.arxiv.org/oai2"
    category_prefix: str = "cs"
    default_categories: List[str] = Field(
        default_factory=lambda: ["cs.AI", "cs.LG", "cs.CV", "cs.CL"]
    )
    max_per_category: int = Field(default=100, ge=1, le=2000)
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)


class EnrichmentConfig(BaseModel):
    """Embedding and classification settings"""

    embedding_dimension: int = Field(default=384, ge=1)
    local_embedding_model: str = "all-minilm"
    cloud_embedding_model: str = "text-embedding-004"
    local_llm_model: str = "llama3.2"
    cloud_llm_model: str = "gemini-2.0-flash"
    concurrency: int = Field(default=1, ge=1, le=16)
    bulk_concurrency: int = Field(default=3, ge=1, le=16)


class ProviderSettings(BaseModel):
    """Endpoints and credentials of external model providers"""

    ollama_base_url: str = "http://localhost:11434"
    google_api_key: Optional[str] = None
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)

    @field_validator("ollama_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class CuratorConfig(BaseModel):
    """Root configuration"""

    rate_limiter: RateLimiterConfig = Field(default_factory=RateLimiterConfig)
    ranking: RankingWeights = Field(default_factory=RankingWeights)
    exploration: ExplorationConfig = Field(default_factory=ExplorationConfig)
    scout: ScoutConfig = Field(default_factory=ScoutConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    digest_timezone: str = "America/New_York"
    digest_hour: int = Field(default=6, ge=0, le=23)
    digest_minute: int = Field(default=30, ge=0, le=59)
    # Profiles seeded into the store at startup
    users: List[UserProfile] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
