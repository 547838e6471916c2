"""Leaderboard response schemas."""

from typing import Union
from uuid import UUID

from pydantic import BaseModel, Field


class LeaderboardStudent(BaseModel):
    """Ranked student entry."""

    rank: int = Field(..., ge=1)
    student_id: UUID
    name: str
    class_id: str | None
    points: int = Field(..., ge=0)


class ClassStanding(BaseModel):
    class_id: str
    total_points: int = Field(..., ge=0)
    student_count: int = Field(..., ge=1)
    average_points: int = Field(..., ge=0)


class StudentRanks(BaseModel):
    """Ranks as displayed to a student; ``"?"`` when unavailable."""

    campus_rank: Union[int, str]
    class_rank: Union[int, str]
