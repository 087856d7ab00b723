"""Rating model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer
from peerrank.database import Base


class Rating(Base):
    """One rater's rank for one student on one question."""
    __tablename__ = "ratings"
    __table_args__ = (
        Index("uq_ratings_triple", "question_id", "student_id", "rater_id", unique=True),
        Index("idx_ratings_room_question", "room_id", "question_id"),
        CheckConstraint("rank >= 1", name="ck_ratings_rank_positive"),
    )

    id = Column(Integer, primary_key=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)  # rated student
    rater_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    rank = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
