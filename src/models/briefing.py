import datetime as dt
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class BriefingStatus(str, Enum):
    GENERATED = "generated"
    VIEWED = "viewed"


class Briefing(BaseModel):
    """Daily ranked selection of papers for one user"""

    user_id: str
    date: dt.date
    paper_ids: List[str] = Field(default_factory=list)
    paper_count: int = 0
    avg_score: float = 0.0
    status: BriefingStatus = BriefingStatus.GENERATED
    generated_at: datetime = Field(default_factory=datetime.utcnow)
