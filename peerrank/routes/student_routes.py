from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peerrank.auth.dependencies import require_admin
from peerrank.auth.principal import Principal
from peerrank.models.room import Room, RoomAssignment
from peerrank.models.student import Student
from peerrank.routes.common import database_unavailable, ensure_database_ready, get_db
from peerrank.services.ledger import RatingLedger

router = APIRouter(tags=['students'])


class CreateStudentRequest(BaseModel):
    student_number: str
    name: str
    email: str

    @field_validator('student_number', 'name')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Student number and name are required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email address is required.')
        return normalized


class StudentResponse(BaseModel):
    id: int
    student_number: str
    name: str
    email: str
    is_registered: bool = False

    class Config:
        from_attributes = True


class StudentWithRoomResponse(StudentResponse):
    room_id: int | None = None
    room_name: str | None = None


def get_student_or_404(student_id: int, db: Session) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Student not found.',
        )
    return student


@router.get('', response_model=list[StudentWithRoomResponse])
def list_students(
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        rows = (
            db.query(Student, Room)
            .outerjoin(RoomAssignment, RoomAssignment.student_id == Student.id)
            .outerjoin(Room, Room.id == RoomAssignment.room_id)
            .order_by(Student.id.asc())
            .all()
        )

        return [
            StudentWithRoomResponse(
                id=student.id,
                student_number=student.student_number,
                name=student.name,
                email=student.email,
                is_registered=bool(student.is_registered),
                room_id=room.id if room else None,
                room_name=room.room_name if room else None,
            )
            for student, room in rows
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(
    data: CreateStudentRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        if db.query(Student).filter(Student.student_number == data.student_number).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Student number already exists.',
            )

        if db.query(Student).filter(Student.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Email already exists.',
            )

        student = Student(
            student_number=data.student_number,
            name=data.name,
            email=data.email,
            is_registered=False,
        )
        db.add(student)
        db.commit()
        db.refresh(student)

        return student
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/{student_id}/reset', response_model=StudentResponse)
def reset_registration(
    student_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        student = get_student_or_404(student_id, db)
        student.is_registered = False
        db.commit()
        db.refresh(student)

        return student
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{student_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready(db)

    try:
        student = get_student_or_404(student_id, db)

        RatingLedger(db).purge_student(student_id)
        db.query(RoomAssignment).filter(RoomAssignment.student_id == student_id).delete(synchronize_session=False)
        db.delete(student)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
