"""Room and room assignment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from peerrank.database import Base


class Room(Base):
    """Represents a group of students answering the same questions."""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_name = Column(String, nullable=False)
    branch = Column(String, nullable=False)
    section = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class RoomAssignment(Base):
    """Places a student in a room. A student belongs to at most one room."""
    __tablename__ = "room_assignments"

    id = Column(Integer, primary_key=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, unique=True)
    assigned_at = Column(DateTime, default=datetime.now)
