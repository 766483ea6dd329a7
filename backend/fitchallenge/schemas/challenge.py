from __future__ import annotations
from datetime import datetime
from typing import Literal, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from fitchallenge.schemas.integrations import Measurement

Category = Literal["running", "yoga", "strength", "hiit", "cycling", "swimming"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
MembershipStatus = Literal["active", "completed", "abandoned"]
SortKey = Literal["popular", "newest", "participants", "difficulty"]
ErrorCode = Literal[
    "NotAuthenticated",
    "ChallengeNotFound",
    "AlreadyJoined",
    "ActiveLimitExceeded",
    "NotJoined",
    "ExternalSourceUnavailable",
    "NothingToSync",
]
Number = int | float

TERMINAL_STATUSES = ("completed", "abandoned")


class CamelModel(BaseModel):
    # Persisted documents use camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Rewards(CamelModel):
    points: int = 0
    badge: str | None = None
    achievements: List[str] = Field(default_factory=list)


class Challenge(CamelModel):
    id: str
    title: str
    description: str = ""
    image_url: str | None = None
    category: Category
    difficulty: Difficulty
    duration: int = Field(gt=0, description="days")
    goals: dict[str, Number] = Field(default_factory=dict)
    rewards: Rewards = Field(default_factory=Rewards)
    participants: int = Field(ge=0, default=0)
    created_at: datetime | None = None
    featured: bool = False


class Progress(CamelModel):
    """Progress snapshot. Goal pairs are None when the challenge doesn't track them."""
    current_day: int = 1
    total_days: int
    completed_workouts: int = 0
    total_workouts: Number
    current_distance: Number | None = None
    total_distance: Number | None = None
    current_calories: Number | None = None
    total_calories: Number | None = None
    current_minutes: Number | None = None
    total_minutes: Number | None = None
    current_sessions: Number | None = None
    total_sessions: Number | None = None


class UserChallenge(CamelModel):
    id: str
    user_id: str
    challenge_id: str
    status: MembershipStatus = "active"
    progress: Progress
    start_date: datetime
    end_date: datetime
    joined_at: datetime
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ProgressUpdate(CamelModel):
    distance: float | None = Field(default=None, ge=0)
    calories: float | None = Field(default=None, ge=0)
    minutes: float | None = Field(default=None, ge=0)
    sessions: float | None = Field(default=None, ge=0)
    workout_completed: bool = False


class ChallengeResult(CamelModel):
    success: bool
    message: str
    error: ErrorCode | None = None
    user_challenge: UserChallenge | None = None
    progress: Progress | None = None
    completion_percentage: int | None = None
    synced_data: dict[str, Measurement] | None = None


class UserChallengeView(CamelModel):
    user_challenge: UserChallenge
    challenge: Challenge | None  # None when the catalog entry is gone
    completion_percentage: int
