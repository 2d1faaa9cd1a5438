"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base


class User(Base):
    """Represents a dashboard login."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    created_at = Column(DateTime(timezone=True), nullable=False)
