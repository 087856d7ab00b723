"""Question model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from peerrank.database import Base


class Question(Base):
    """Represents a prompt students answer by ranking their peers."""
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
