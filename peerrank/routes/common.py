from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from peerrank.database import SessionLocal, ensure_ratings_schema
from peerrank.models.room import Room
from peerrank.services.ranking import RankingService

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready(db: Session) -> None:
    try:
        ensure_ratings_schema(db.get_bind())
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def get_room_or_404(room_id: int, db: Session) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if room is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Room not found.',
        )
    return room


def get_ranking_service(request: Request, db: Session = Depends(get_db)) -> RankingService:
    return RankingService(db, request.app.state.submission_locks)
