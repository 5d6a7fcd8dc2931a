"""Session completion statistics."""
from pydantic import BaseModel, ConfigDict, Field

from shared.models.domain import FeedbackSession


class SessionStats(BaseModel):
    expected_total: int = Field(default=0, ge=0)
    submitted_total: int = Field(default=0, ge=0)


class SessionDetails(BaseModel):
    """A session with its expected and submitted respondent counts."""
    model_config = ConfigDict(frozen=True)

    session: FeedbackSession
    stats: SessionStats = Field(default_factory=SessionStats)
