from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field

POINTS_PER_LEVEL = 500


def level_for(total_points: int) -> int:
    return total_points // POINTS_PER_LEVEL + 1


class ProgressRecord(BaseModel):
    user_id: str
    total_points: int = Field(default=0, ge=0)
    badges_earned: list[str] = Field(default_factory=list)
    challenges_completed: int = 0
    completed_challenge_ids: list[str] = Field(default_factory=list)
    registered_seq: int = 0

    @computed_field
    @property
    def level(self) -> int:
        return level_for(self.total_points)


class Challenge(BaseModel):
    id: str
    title: str
    description: str = ""
    duration_days: int = 7
    reward: int = Field(ge=0)
    participant_ids: list[str] = Field(default_factory=list)
    created_at: datetime

    @computed_field
    @property
    def participant_count(self) -> int:
        return len(self.participant_ids)


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    total_points: int
    level: int
    badge_count: int

    model_config = ConfigDict(frozen=True)
