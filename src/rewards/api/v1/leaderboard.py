"""Leaderboard endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import User
from ...schemas import ClassStanding, LeaderboardStudent
from ...services import ranking_service
from ..deps import get_current_user

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get(
    "",
    response_model=List[LeaderboardStudent],
    summary="Top innovator-verified students",
    responses={
        200: {
            "description": "Leaderboard entries ordered by points",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "rank": 1,
                            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "name": "Omar Al Mansoori",
                            "class_id": "10-A",
                            "points": 2450,
                        }
                    ]
                }
            },
        }
    },
)
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100, description="Number of top students to return"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[LeaderboardStudent]:
    """Return verified students ranked by points; ties break on student id."""

    students = ranking_service.top_students(db, limit=limit)
    return [
        LeaderboardStudent(
            rank=rank,
            student_id=student.id,
            name=student.name,
            class_id=student.class_id,
            points=student.points or 0,
        )
        for rank, student in enumerate(students, start=1)
    ]


@router.get("/classes", response_model=List[ClassStanding], summary="Classes by average points")
def get_class_standings(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[ClassStanding]:
    response: List[ClassStanding] = []
    for class_id, total_points, student_count in ranking_service.class_standings(db):
        response.append(
            ClassStanding(
                class_id=class_id,
                total_points=int(total_points or 0),
                student_count=int(student_count),
                average_points=int(total_points or 0) // int(student_count),
            )
        )
    return response
