import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peerrank.auth import jwt_handler
from peerrank.auth.dependencies import get_current_principal
from peerrank.auth.principal import Principal
from peerrank.core import config
from peerrank.models.student import Student
from peerrank.routes.common import database_unavailable, get_db
from peerrank.services.directory import Directory

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class StudentLoginRequest(BaseModel):
    student_number: str
    email: str
    name: str

    @field_validator('student_number', 'name')
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    type: str
    id: int | None = None
    name: str | None = None
    username: str | None = None


class MeResponse(BaseModel):
    type: str
    id: int | None = None
    name: str | None = None
    student_number: str | None = None
    email: str | None = None
    username: str | None = None
    room_id: int | None = None
    room_name: str | None = None


@router.post('/student/login', response_model=TokenResponse)
def student_login(data: StudentLoginRequest, db: Session = Depends(get_db)):
    """Register a student on first sign-in and hand back a bearer token.

    The student must exist in the directory and the email and name must match
    the record (name case-insensitively). A student who already registered
    cannot sign in again until an admin resets their registration.
    """
    try:
        student = db.query(Student).filter(Student.student_number == data.student_number).first()
        if student is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Student not found.')

        if student.email.lower() != data.email:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email address.')

        if student.is_registered:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Student already registered.')

        if not data.name or data.name.lower() != student.name.lower():
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid name.')

        student.is_registered = True
        db.commit()
        db.refresh(student)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Student %s registered', student.id)
    token = jwt_handler.create_access_token(Principal.student(student.id))
    return TokenResponse(access_token=token, type='student', id=student.id, name=student.name)


@router.post('/admin/login', response_model=TokenResponse)
def admin_login(data: AdminLoginRequest):
    username_ok = hmac.compare_digest(data.username.encode(), config.ADMIN_USERNAME.encode())
    password_ok = hmac.compare_digest(data.password.encode(), config.ADMIN_PASSWORD.encode())
    if not (username_ok and password_ok):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials.')

    token = jwt_handler.create_access_token(Principal.admin(config.ADMIN_USERNAME))
    return TokenResponse(access_token=token, type='admin', username=config.ADMIN_USERNAME)


@router.get('/me', response_model=MeResponse)
def me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    if principal.is_admin:
        return MeResponse(type='admin', username=principal.username)

    try:
        directory = Directory(db)
        student = directory.get_student(principal.student_id)
        room = directory.room_for_student(principal.student_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if student is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='User not found')

    return MeResponse(
        type='student',
        id=student.id,
        name=student.name,
        student_number=student.student_number,
        email=student.email,
        room_id=room.id if room else None,
        room_name=room.room_name if room else None,
    )
