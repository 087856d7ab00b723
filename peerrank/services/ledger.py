"""Rating ledger: the only store of submitted ranks."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from peerrank.models.question import Question
from peerrank.models.rating import Rating

logger = logging.getLogger(__name__)


class RatingLedger:
    """Read, write and cascade-delete access to rating rows.

    A ledger wraps one SQLAlchemy session. Writes are flushed, not
    committed; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, question_id: int, student_id: int, rater_id: int) -> Rating | None:
        return self.db.query(Rating).filter(
            Rating.question_id == question_id,
            Rating.student_id == student_id,
            Rating.rater_id == rater_id,
        ).first()

    def insert(self, room_id: int, question_id: int, student_id: int, rater_id: int, rank: int) -> Rating:
        rating = Rating(
            room_id=room_id,
            question_id=question_id,
            student_id=student_id,
            rater_id=rater_id,
            rank=rank,
            created_at=datetime.now(),
        )
        self.db.add(rating)
        self.db.flush()
        return rating

    def overwrite_rank(self, rating: Rating, rank: int) -> Rating:
        rating.rank = rank
        self.db.flush()
        return rating

    def rank_given_to_other(self, question_id: int, rater_id: int, rank: int, student_id: int) -> Rating | None:
        """Another student this rater already placed at ``rank`` on the question."""
        return self.db.query(Rating).filter(
            Rating.question_id == question_id,
            Rating.rater_id == rater_id,
            Rating.rank == rank,
            Rating.student_id != student_id,
        ).first()

    def scores(self, room_id: int, question_id: int | None = None) -> list[tuple[int, int, int]]:
        """(student_id, total of ranks, number of ranks) per rated student.

        One aggregate statement, so the result reflects a single snapshot of
        the table. Ranks are capped at 32-bit values on submission, which
        keeps the 64-bit SUM clear of overflow.
        """
        query = self.db.query(
            Rating.student_id,
            func.sum(Rating.rank),
            func.count(Rating.rank),
        ).filter(Rating.room_id == room_id)
        if question_id is not None:
            query = query.filter(Rating.question_id == question_id)

        rows = query.group_by(Rating.student_id).all()
        return [(student_id, int(total), int(count)) for student_id, total, count in rows]

    def purge_question(self, question_id: int) -> int:
        deleted = self.db.query(Rating).filter(
            Rating.question_id == question_id,
        ).delete(synchronize_session=False)
        logger.info('Deleted %s ratings for question %s', deleted, question_id)
        return deleted

    def purge_room(self, room_id: int) -> int:
        question_ids = select(Question.id).where(Question.room_id == room_id)
        deleted = self.db.query(Rating).filter(
            (Rating.room_id == room_id) | Rating.question_id.in_(question_ids),
        ).delete(synchronize_session=False)
        logger.info('Deleted %s ratings for room %s', deleted, room_id)
        return deleted

    def purge_student(self, student_id: int) -> int:
        deleted = self.db.query(Rating).filter(
            (Rating.student_id == student_id) | (Rating.rater_id == student_id),
        ).delete(synchronize_session=False)
        logger.info('Deleted %s ratings given or received by student %s', deleted, student_id)
        return deleted

    def move_question(self, question_id: int, room_id: int) -> int:
        """Keep the room recorded on a question's ratings in step with the question."""
        return self.db.query(Rating).filter(
            Rating.question_id == question_id,
            Rating.room_id != room_id,
        ).update({Rating.room_id: room_id}, synchronize_session=False)
