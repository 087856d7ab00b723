from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from peerrank.auth.dependencies import get_current_principal
from peerrank.auth.principal import Principal
from peerrank.core.errors import RankingError, to_http_exception
from peerrank.routes.common import database_unavailable, ensure_database_ready, get_ranking_service
from peerrank.services.ranking import RankingService

router = APIRouter(tags=['ratings'])


class SubmitRatingRequest(BaseModel):
    # A rater_id sent by the client is ignored: the rater is the caller.
    room_id: int
    question_id: int
    student_id: int
    rank: int


class RatingResponse(BaseModel):
    id: int
    room_id: int
    question_id: int
    student_id: int
    rater_id: int
    rank: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def submit_rating(
    data: SubmitRatingRequest,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    service: RankingService = Depends(get_ranking_service),
):
    ensure_database_ready(service.ledger.db)

    try:
        result = service.submit_rating(
            principal,
            room_id=data.room_id,
            question_id=data.question_id,
            rated_student_id=data.student_id,
            rank=data.rank,
        )
    except RankingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        service.ledger.db.rollback()
        raise database_unavailable() from exc

    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result.rating
