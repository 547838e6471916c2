"""Campus class (homeroom) model."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class CampusClass(Base):
    """A homeroom such as ``10-A``."""

    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("grade BETWEEN 9 AND 12", name="classes_grade_range"),
    )

    id = Column(String, primary_key=True)
    grade = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    students = relationship("Student", back_populates="campus_class")
