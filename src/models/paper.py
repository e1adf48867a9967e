from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PaperStatus(str, Enum):
    """Lifecycle of a paper record"""

    NEW = "new"
    ENRICHED = "enriched"
    RANKED = "ranked"
    ARCHIVED = "archived"


class Paper(BaseModel):
    """An arXiv paper, keyed by its version-independent base id"""

    # Identity
    arxiv_id: str = Field(..., min_length=1, description="Base id, e.g. 2401.12345")
    version: int = Field(1, ge=1)

    # Content
    title: str = Field(..., min_length=1, max_length=1000)
    abstract: str = Field("", max_length=20000)
    authors: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)

    # Links
    pdf_url: Optional[str] = None

    # Dates
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    status: PaperStatus = PaperStatus.NEW

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None

    @property
    def text(self) -> str:
        """Title and abstract joined, used for keyword rules"""
        return f"{self.title} {self.abstract}"


class EvidenceSignals(BaseModel):
    """Boolean quality indicators detected in the abstract"""

    has_baselines: bool = False
    has_ablations: bool = False
    has_code: bool = False
    has_data: bool = False
    has_multiple_evals: bool = False


class PaperEnriched(BaseModel):
    """Tier 0 enrichment computed from title and abstract"""

    arxiv_id: str
    topics: List[str] = Field(default_factory=list)
    facets: List[str] = Field(default_factory=list)
    embedding: List[float] = Field(default_factory=list)
    # True only for vectors that did not come from a real provider call
    embedding_placeholder: bool = False
    math_depth: float = Field(0.0, ge=0.0, le=1.0)
    signals: EvidenceSignals = Field(default_factory=EvidenceSignals)
    classifier: str = "unknown"
    enriched_at: datetime = Field(default_factory=datetime.utcnow)


class ArxivCategory(BaseModel):
    """Entry of the arXiv subject taxonomy"""

    id: str
    name: str
    description: str = ""


class Classification(BaseModel):
    """Topics and facets assigned to a paper by a classifier"""

    topics: List[str] = Field(default_factory=list)
    facets: List[str] = Field(default_factory=list)
