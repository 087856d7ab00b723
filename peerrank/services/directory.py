"""Read-only view of rooms, questions, students and room assignments."""

from sqlalchemy.orm import Session

from peerrank.models.question import Question
from peerrank.models.room import Room, RoomAssignment
from peerrank.models.student import Student


class Directory:
    def __init__(self, db: Session):
        self.db = db

    def get_room(self, room_id: int) -> Room | None:
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_question(self, question_id: int) -> Question | None:
        return self.db.query(Question).filter(Question.id == question_id).first()

    def get_student(self, student_id: int) -> Student | None:
        return self.db.query(Student).filter(Student.id == student_id).first()

    def get_students(self, student_ids: list[int]) -> dict[int, Student]:
        if not student_ids:
            return {}
        students = self.db.query(Student).filter(Student.id.in_(student_ids)).all()
        return {student.id: student for student in students}

    def students_in_room(self, room_id: int) -> list[Student]:
        return (
            self.db.query(Student)
            .join(RoomAssignment, RoomAssignment.student_id == Student.id)
            .filter(RoomAssignment.room_id == room_id)
            .order_by(Student.id.asc())
            .all()
        )

    def room_for_student(self, student_id: int) -> Room | None:
        return (
            self.db.query(Room)
            .join(RoomAssignment, RoomAssignment.room_id == Room.id)
            .filter(RoomAssignment.student_id == student_id)
            .first()
        )

    def is_assigned(self, room_id: int, student_id: int) -> bool:
        assignment = self.db.query(RoomAssignment.id).filter(
            RoomAssignment.room_id == room_id,
            RoomAssignment.student_id == student_id,
        ).first()
        return assignment is not None
