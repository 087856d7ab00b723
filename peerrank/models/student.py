"""Student model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from peerrank.database import Base


class Student(Base):
    """Represents a student who can rate and be rated by peers."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    student_number = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    is_registered = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
