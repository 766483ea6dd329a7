from __future__ import annotations
from pydantic import BaseModel

class LeaderboardRow(BaseModel):
    rank: int
    user_id: str
    name: str
    points: int
    workouts: int
    completed: int
