"""Validation and at-most-one-rank-per-triple writes into the ledger."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from peerrank.auth.principal import Principal
from peerrank.core import config
from peerrank.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RatingValidationError,
)
from peerrank.models.rating import Rating
from peerrank.services.directory import Directory
from peerrank.services.ledger import RatingLedger
from peerrank.services.locks import TripleLocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    rating: Rating
    created: bool


# Largest value an INTEGER column holds on every supported backend.
MAX_STORED_INT = 2_147_483_647


def _require_positive_int(value, field_name: str) -> int:
    # bool is an int subclass but never a valid id or rank
    if isinstance(value, bool) or not isinstance(value, int):
        raise RatingValidationError(f'{field_name} must be an integer.')
    if value < 1:
        raise RatingValidationError(f'{field_name} must be a positive integer.')
    if value > MAX_STORED_INT:
        raise RatingValidationError(f'{field_name} must be at most {MAX_STORED_INT}.')
    return value


class SubmissionGuard:
    """Records a rater's rank for a student on a question.

    A resubmission for the same (question, student, rater) overwrites the
    stored rank instead of adding a row. The lookup and the write happen
    under the triple's lock and inside one transaction; the ledger's unique
    index turns a race with another process into a ConflictError.
    """

    def __init__(
        self,
        ledger: RatingLedger,
        directory: Directory,
        locks: TripleLocks,
        allow_tied_ranks: bool | None = None,
        require_room_membership: bool | None = None,
    ):
        self.ledger = ledger
        self.directory = directory
        self.locks = locks
        self.allow_tied_ranks = (
            config.RATING_ALLOW_TIED_RANKS if allow_tied_ranks is None else allow_tied_ranks
        )
        self.require_room_membership = (
            config.RATING_REQUIRE_ROOM_MEMBERSHIP if require_room_membership is None else require_room_membership
        )

    def submit(
        self,
        room_id: int,
        question_id: int,
        rated_student_id: int,
        rater: Principal,
        rank: int,
    ) -> SubmissionResult:
        room_id = _require_positive_int(room_id, 'room_id')
        question_id = _require_positive_int(question_id, 'question_id')
        rated_student_id = _require_positive_int(rated_student_id, 'student_id')
        rank = _require_positive_int(rank, 'rank')

        if rater is None or not rater.is_student:
            raise PermissionDeniedError('Only students can submit ratings.')

        self._check_references(room_id, question_id, rated_student_id, rater.student_id)

        db = self.ledger.db
        with self.locks.for_triple(question_id, rated_student_id, rater.student_id):
            try:
                if not self.allow_tied_ranks:
                    tied = self.ledger.rank_given_to_other(question_id, rater.student_id, rank, rated_student_id)
                    if tied is not None:
                        raise RatingValidationError(
                            f'Rank {rank} was already given to another student for this question.'
                        )

                existing = self.ledger.find(question_id, rated_student_id, rater.student_id)
                if existing is not None:
                    rating = self.ledger.overwrite_rank(existing, rank)
                    created = False
                else:
                    rating = self.ledger.insert(room_id, question_id, rated_student_id, rater.student_id, rank)
                    created = True

                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ConflictError(
                    'This rating was submitted concurrently. Submit it again to overwrite.'
                ) from exc
            except Exception:
                db.rollback()
                raise

            db.refresh(rating)

        logger.info(
            '%s rating %s: question=%s student=%s rater=%s rank=%s',
            'Recorded' if created else 'Updated',
            rating.id,
            question_id,
            rated_student_id,
            rater.student_id,
            rank,
        )
        return SubmissionResult(rating=rating, created=created)

    def _check_references(self, room_id: int, question_id: int, rated_student_id: int, rater_id: int) -> None:
        if self.directory.get_room(room_id) is None:
            raise NotFoundError('Room not found.')

        question = self.directory.get_question(question_id)
        if question is None:
            raise NotFoundError('Question not found.')
        if question.room_id != room_id:
            raise RatingValidationError('Question does not belong to this room.')

        if self.directory.get_student(rated_student_id) is None:
            raise NotFoundError('Student not found.')
        if self.directory.get_student(rater_id) is None:
            raise NotFoundError('Rater not found.')

        if self.require_room_membership:
            if not self.directory.is_assigned(room_id, rater_id):
                raise PermissionDeniedError('Only students assigned to this room can rate in it.')
            if not self.directory.is_assigned(room_id, rated_student_id):
                raise RatingValidationError('Rated student is not assigned to this room.')
