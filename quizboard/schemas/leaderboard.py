"""
Pydantic schemas for leaderboard endpoints
"""
from pydantic import BaseModel
from typing import List
from datetime import datetime


class LeaderboardEntry(BaseModel):
    """Per-user aggregate of attempts within one quiz"""
    username: str
    total_score: float = 0.0
    answered_count: int = 0
    last_submission_at: datetime

    class Config:
        from_attributes = True


class LeaderboardResponse(BaseModel):
    """Ranked leaderboard for a quiz"""
    quiz_id: str
    leaderboard: List[LeaderboardEntry]
