from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

SKIM_SUMMARY = "skim"


class Summary(BaseModel):
    """LLM-generated skim of one paper, cached by abstract hash"""

    arxiv_id: str
    summary_type: str = SKIM_SUMMARY
    whats_new: str
    key_points: List[str] = Field(default_factory=list)
    markdown_content: str
    content_hash: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)
