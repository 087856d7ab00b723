from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peerrank.auth.dependencies import get_current_principal, require_admin
from peerrank.auth.principal import Principal
from peerrank.core.errors import RankingError, to_http_exception
from peerrank.models.question import Question
from peerrank.models.room import Room, RoomAssignment
from peerrank.models.student import Student
from peerrank.routes.common import (
    database_unavailable,
    ensure_database_ready,
    get_db,
    get_ranking_service,
    get_room_or_404,
)
from peerrank.routes.question_routes import QuestionResponse
from peerrank.routes.student_routes import StudentResponse
from peerrank.services.directory import Directory
from peerrank.services.ledger import RatingLedger
from peerrank.services.ranking import RankingService

router = APIRouter(tags=['rooms'])


class RoomRequest(BaseModel):
    room_name: str
    branch: str
    section: str

    @field_validator('room_name', 'branch', 'section')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Room name, branch and section are required.')
        return normalized


class RoomResponse(BaseModel):
    id: int
    room_name: str
    branch: str
    section: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RoomSummaryResponse(RoomResponse):
    student_count: int


class RoomDetailResponse(RoomSummaryResponse):
    questions: list[QuestionResponse]


class RoomAssignmentResponse(BaseModel):
    id: int
    room_id: int
    student_id: int
    assigned_at: datetime | None = None

    class Config:
        from_attributes = True


class LeaderboardEntryResponse(BaseModel):
    position: int
    student_id: int
    student: StudentResponse
    total_rating: int
    average_rating: float


def count_students(room_id: int, db: Session) -> int:
    return db.query(func.count(RoomAssignment.id)).filter(RoomAssignment.room_id == room_id).scalar() or 0


@router.get('', response_model=list[RoomSummaryResponse])
def list_rooms(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        counts = dict(
            db.query(RoomAssignment.room_id, func.count(RoomAssignment.id))
            .group_by(RoomAssignment.room_id)
            .all()
        )
        rooms = db.query(Room).order_by(Room.id.asc()).all()

        return [
            RoomSummaryResponse(
                id=room.id,
                room_name=room.room_name,
                branch=room.branch,
                section=room.section,
                created_at=room.created_at,
                student_count=counts.get(room.id, 0),
            )
            for room in rooms
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{room_id}', response_model=RoomDetailResponse)
def get_room(
    room_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        room = get_room_or_404(room_id, db)
        questions = db.query(Question).filter(Question.room_id == room_id).order_by(Question.id.asc()).all()

        return RoomDetailResponse(
            id=room.id,
            room_name=room.room_name,
            branch=room.branch,
            section=room.section,
            created_at=room.created_at,
            student_count=count_students(room_id, db),
            questions=[QuestionResponse.model_validate(question) for question in questions],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    data: RoomRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        room = Room(room_name=data.room_name, branch=data.branch, section=data.section)
        db.add(room)
        db.commit()
        db.refresh(room)

        return room
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{room_id}', response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        room = get_room_or_404(room_id, db)
        room.room_name = data.room_name
        room.branch = data.branch
        room.section = data.section
        db.commit()
        db.refresh(room)

        return room
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{room_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready(db)

    try:
        room = get_room_or_404(room_id, db)

        RatingLedger(db).purge_room(room_id)
        db.query(Question).filter(Question.room_id == room_id).delete(synchronize_session=False)
        db.query(RoomAssignment).filter(RoomAssignment.room_id == room_id).delete(synchronize_session=False)
        db.delete(room)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{room_id}/students', response_model=list[StudentResponse])
def list_room_students(
    room_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        return Directory(db).students_in_room(room_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post(
    '/{room_id}/students/{student_id}',
    response_model=RoomAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_student(
    room_id: int,
    student_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        get_room_or_404(room_id, db)
        student = db.query(Student).filter(Student.id == student_id).first()
        if student is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Student not found.',
            )

        # A student lives in one room at a time; moving them drops the old seat.
        db.query(RoomAssignment).filter(
            RoomAssignment.student_id == student_id,
        ).delete(synchronize_session=False)

        assignment = RoomAssignment(room_id=room_id, student_id=student_id)
        db.add(assignment)
        db.commit()
        db.refresh(assignment)

        return assignment
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{room_id}/students/{student_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_student(
    room_id: int,
    student_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        assignment = db.query(RoomAssignment).filter(
            RoomAssignment.room_id == room_id,
            RoomAssignment.student_id == student_id,
        ).first()

        if assignment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Room assignment not found.',
            )

        db.delete(assignment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{room_id}/questions', response_model=list[QuestionResponse])
def list_room_questions(
    room_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        return db.query(Question).filter(Question.room_id == room_id).order_by(Question.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{room_id}/leaderboard', response_model=list[LeaderboardEntryResponse])
def get_leaderboard(
    room_id: int,
    question_id: int | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    service: RankingService = Depends(get_ranking_service),
):
    try:
        entries = service.get_leaderboard(room_id, question_id)
    except RankingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [
        LeaderboardEntryResponse(
            position=entry.position,
            student_id=entry.student.id,
            student=StudentResponse.model_validate(entry.student),
            total_rating=entry.total_rating,
            average_rating=entry.average_rating,
        )
        for entry in entries
    ]
