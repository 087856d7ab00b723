from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peerrank.auth.dependencies import get_current_principal, require_admin
from peerrank.auth.principal import Principal
from peerrank.models.question import Question
from peerrank.models.room import Room
from peerrank.routes.common import database_unavailable, ensure_database_ready, get_db, get_room_or_404
from peerrank.services.ledger import RatingLedger

router = APIRouter(tags=['questions'])

MAX_QUESTION_TEXT_LENGTH = 1000


class QuestionRequest(BaseModel):
    room_id: int
    question_text: str

    @field_validator('question_text')
    @classmethod
    def validate_question_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Question text is required.')
        if len(normalized) > MAX_QUESTION_TEXT_LENGTH:
            raise ValueError(f'Question text must be {MAX_QUESTION_TEXT_LENGTH} characters or fewer.')
        return normalized


class QuestionResponse(BaseModel):
    id: int
    room_id: int
    question_text: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class QuestionWithRoomResponse(QuestionResponse):
    room_name: str


def get_question_or_404(question_id: int, db: Session) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if question is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Question not found.',
        )
    return question


@router.get('', response_model=list[QuestionWithRoomResponse])
def list_questions(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        rows = (
            db.query(Question, Room.room_name)
            .outerjoin(Room, Room.id == Question.room_id)
            .order_by(Question.id.asc())
            .all()
        )

        return [
            QuestionWithRoomResponse(
                id=question.id,
                room_id=question.room_id,
                question_text=question.question_text,
                created_at=question.created_at,
                room_name=room_name or 'Unknown Room',
            )
            for question, room_name in rows
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
def create_question(
    data: QuestionRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        get_room_or_404(data.room_id, db)

        question = Question(room_id=data.room_id, question_text=data.question_text)
        db.add(question)
        db.commit()
        db.refresh(question)

        return question
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{question_id}', response_model=QuestionResponse)
def update_question(
    question_id: int,
    data: QuestionRequest,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready(db)

    try:
        get_room_or_404(data.room_id, db)
        question = get_question_or_404(question_id, db)

        if question.room_id != data.room_id:
            RatingLedger(db).move_question(question_id, data.room_id)

        question.room_id = data.room_id
        question.question_text = data.question_text
        db.commit()
        db.refresh(question)

        return question
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{question_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: int,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready(db)

    try:
        question = get_question_or_404(question_id, db)

        RatingLedger(db).purge_question(question_id)
        db.delete(question)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
