from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from src.utils.vector_math import is_zero, norm

UNIT_NORM_TOLERANCE = 1e-6


class UserProfile(BaseModel):
    """Per-user personalization state

    ``interest_vector`` is either empty / all zeros (no history yet) or unit
    length; only the vector learner writes it after creation.
    """

    user_id: str

    # Learned interests
    interest_vector: List[float] = Field(default_factory=list)

    # Rules
    include_topics: List[str] = Field(default_factory=list)
    exclude_topics: List[str] = Field(default_factory=list)
    include_keywords: List[str] = Field(default_factory=list)
    exclude_keywords: List[str] = Field(default_factory=list)

    # Tolerances
    math_depth_max: float = Field(1.0, ge=0.0, le=1.0)
    exploration_rate: float = Field(0.15, ge=0.0, le=1.0)
    lab_boosts: Dict[str, float] = Field(default_factory=dict)

    # Sources
    arxiv_categories: List[str] = Field(
        default_factory=lambda: ["cs.AI", "cs.LG", "cs.CV", "cs.CL"]
    )
    sources_enabled: Dict[str, bool] = Field(
        default_factory=lambda: {
            "arxiv": True,
            "openAlex": False,
            "semanticScholar": False,
        }
    )

    # Model preferences
    use_local_embeddings: bool = True
    use_local_llm: bool = True

    # Digest
    noise_cap: int = Field(15, ge=0, le=200)
    target_today: int = Field(15, ge=0)
    target_7d: int = Field(100, ge=0)
    score_threshold: float = Field(0.5, ge=0.0, le=1.0)
    digest_enabled: bool = True

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("interest_vector")
    @classmethod
    def validate_interest_vector(cls, v: List[float]) -> List[float]:
        if not v or is_zero(v):
            return v
        magnitude = norm(v)
        if abs(magnitude - 1.0) > UNIT_NORM_TOLERANCE:
            raise ValueError(
                "interest_vector must be empty, zero or unit length, "
                f"got norm {magnitude:.6f}"
            )
        return v

    @property
    def has_interests(self) -> bool:
        """Whether the interest vector carries any direction"""
        return any(v != 0.0 for v in self.interest_vector)
