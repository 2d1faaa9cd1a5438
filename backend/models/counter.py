"""Counter model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base


class Counter(Base):
    """Named sequence used to mint numeric record ids."""
    __tablename__ = "counters"

    name = Column(String, primary_key=True)
    sequence = Column(Integer, nullable=False, default=0)
