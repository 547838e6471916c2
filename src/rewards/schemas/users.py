"""Pydantic schemas for accounts and classes.

Accounts are a tagged union on ``role``: each role has its own create and
read shape, so a payload can never mix, say, a teacher's subject with a
student's grade.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=8)


class StudentCreate(_AccountCreate):
    role: Literal["Student"]
    grade: Optional[int] = Field(None, ge=9, le=12)
    class_id: Optional[str] = None
    points: int = Field(0, ge=0, description="Opening balance.")


class TeacherCreate(_AccountCreate):
    role: Literal["Teacher"]
    subject: Optional[str] = None
    assigned_classes: list[str] = Field(default_factory=list)


class AdminCreate(_AccountCreate):
    role: Literal["Admin", "Super Admin"]


class StaffCreate(_AccountCreate):
    role: Literal["Staff"]


UserCreate = Annotated[
    Union[StudentCreate, TeacherCreate, AdminCreate, StaffCreate],
    Field(discriminator="role"),
]


class _AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[str] = Field(None, min_length=3, max_length=254)
    password: Optional[str] = Field(None, min_length=8, description="Sets a new password.")


class StudentUpdate(_AccountUpdate):
    role: Literal["Student"]
    grade: Optional[int] = Field(None, ge=9, le=12)
    class_id: Optional[str] = Field(None, description="Send null to remove the student from their class.")


class TeacherUpdate(_AccountUpdate):
    role: Literal["Teacher"]
    subject: Optional[str] = None
    assigned_classes: Optional[list[str]] = None


class AdminUpdate(_AccountUpdate):
    role: Literal["Admin", "Super Admin"]


class StaffUpdate(_AccountUpdate):
    role: Literal["Staff"]


UserUpdate = Annotated[
    Union[StudentUpdate, TeacherUpdate, AdminUpdate, StaffUpdate],
    Field(discriminator="role"),
]


class _AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    status: str
    created_at: datetime


class StudentRead(_AccountRead):
    role: Literal["Student"] = "Student"
    grade: Optional[int]
    class_id: Optional[str]
    points: int
    is_innovator_verified: bool
    is_quiz_locked: bool
    quiz_attempts: int
    achievements: list[str]

    @field_validator("points", "quiz_attempts", mode="before")
    @classmethod
    def _zero_if_missing(cls, value):
        return value or 0

    @field_validator("is_innovator_verified", "is_quiz_locked", mode="before")
    @classmethod
    def _false_if_missing(cls, value):
        return bool(value)

    @field_validator("achievements", mode="before")
    @classmethod
    def _empty_if_missing(cls, value):
        return list(value or [])


class TeacherRead(_AccountRead):
    role: Literal["Teacher"] = "Teacher"
    subject: Optional[str]
    assigned_classes: list[str]

    @field_validator("assigned_classes", mode="before")
    @classmethod
    def _empty_if_missing(cls, value):
        return list(value or [])


class AdminRead(_AccountRead):
    role: Literal["Admin", "Super Admin"]


class StaffRead(_AccountRead):
    role: Literal["Staff"] = "Staff"


UserRead = Annotated[
    Union[StudentRead, TeacherRead, AdminRead, StaffRead],
    Field(discriminator="role"),
]

_READ_MODELS = {
    "Student": StudentRead,
    "Teacher": TeacherRead,
    "Admin": AdminRead,
    "Super Admin": AdminRead,
    "Staff": StaffRead,
}


def serialize_user(user) -> _AccountRead:
    """Build the read model matching the ORM user's role."""

    role = user.role.value
    model = _READ_MODELS[role]
    data = {name: getattr(user, name, None) for name in model.model_fields if name != "role"}
    data["role"] = role
    return model.model_validate(data)


class ClassCreate(BaseModel):
    grade: int = Field(..., ge=9, le=12)
    name: str = Field(..., min_length=1, max_length=8, description="Section letter, e.g. 'A'.")


class ClassUpdate(BaseModel):
    grade: Optional[int] = Field(None, ge=9, le=12)
    name: Optional[str] = Field(None, min_length=1, max_length=8)


class ClassRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grade: int
    name: str


class AchievementRead(BaseModel):
    achievement_id: str
    title: str
    description: str
    icon: str
    progress: int = Field(..., ge=0, le=100)
    is_unlocked: bool
