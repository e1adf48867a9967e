from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class Score(BaseModel):
    """One paper scored for one user in one ranking run"""

    user_id: str
    arxiv_id: str
    run_id: str

    # Signals (each in [0, 1])
    novelty: float = Field(..., ge=0.0, le=1.0)
    evidence: float = Field(..., ge=0.0, le=1.0)
    velocity: float = Field(..., ge=0.0, le=1.0)
    personal_fit: float = Field(..., ge=0.0, le=1.0)
    lab_prior: float = Field(..., ge=0.0, le=1.0)
    math_penalty: float = Field(..., ge=0.0, le=1.0)

    exploration_bonus: float = Field(0.0, ge=0.0)
    final_score: float = Field(..., ge=0.0, le=1.0)

    # signal name -> weighted contribution (positive contributions only)
    why_shown: Dict[str, float] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"frozen": True}


class SkippedPaper(BaseModel):
    """A paper the ranker did not score, with the reason"""

    arxiv_id: str
    reason: str


class RankingResult(BaseModel):
    """Output of one ranking pass for one user"""

    user_id: str
    run_id: str
    scores: List[Score] = Field(default_factory=list)
    skipped: List[SkippedPaper] = Field(default_factory=list)

    @property
    def excluded_ids(self) -> List[str]:
        return [s.arxiv_id for s in self.skipped if s.reason == "excluded_by_rules"]
