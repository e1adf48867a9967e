import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FeedbackAction(str, Enum):
    SAVE = "save"
    DISMISS = "dismiss"
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    HIDE = "hide"

    @property
    def is_positive(self) -> bool:
        return self in (FeedbackAction.SAVE, FeedbackAction.THUMBS_UP)


class Feedback(BaseModel):
    """Append-only feedback log entry"""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    arxiv_id: str
    action: FeedbackAction
    weight: float = 1.0
    context: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"frozen": True}
