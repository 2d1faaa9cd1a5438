"""Student model definitions."""

from sqlalchemy import Column, Date, DateTime, Index, Integer, String, Text
from backend.database import Base


class Student(Base):
    """Represents an enrolled (or applying) student."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    course = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")
    # NULLs never collide, so this behaves like a sparse unique index.
    student_id = Column(String, unique=True, nullable=True)
    enrollment_date = Column(Date, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_students_created_at", "created_at"),
    )
