"""Leaderboard computation over the rating ledger."""

from dataclasses import dataclass

from peerrank.core import config
from peerrank.core.errors import NotFoundError
from peerrank.models.student import Student
from peerrank.services.directory import Directory
from peerrank.services.ledger import RatingLedger


@dataclass(frozen=True)
class StudentScore:
    student_id: int
    total_rating: int
    rating_count: int

    @property
    def average_rating(self) -> float:
        return self.total_rating / self.rating_count


@dataclass(frozen=True)
class LeaderboardEntry:
    position: int
    student: Student
    total_rating: int
    average_rating: float


def order_scores(scores: list[StudentScore], order: str = 'descending') -> list[StudentScore]:
    """Sort by average rating, equal averages by student id ascending."""
    if order == 'ascending':
        return sorted(scores, key=lambda score: (score.average_rating, score.student_id))
    return sorted(scores, key=lambda score: (-score.average_rating, score.student_id))


class Aggregator:
    def __init__(self, ledger: RatingLedger, directory: Directory, order: str | None = None):
        self.ledger = ledger
        self.directory = directory
        self.order = order or config.LEADERBOARD_ORDER

    def scores(self, room_id: int, question_id: int | None = None) -> list[StudentScore]:
        return [
            StudentScore(student_id=student_id, total_rating=total, rating_count=count)
            for student_id, total, count in self.ledger.scores(room_id, question_id)
            if count > 0
        ]

    def leaderboard(self, room_id: int, question_id: int | None = None) -> list[LeaderboardEntry]:
        """Rated students of a room, best first, with dense 1-based positions.

        Students with no ratings in scope are left out. A room without
        ratings gives an empty list; a missing room or a question outside
        the room is reported as NotFoundError.
        """
        if self.directory.get_room(room_id) is None:
            raise NotFoundError('Room not found.')

        if question_id is not None:
            question = self.directory.get_question(question_id)
            if question is None or question.room_id != room_id:
                raise NotFoundError('Question not found in this room.')

        ordered = order_scores(self.scores(room_id, question_id), self.order)
        students = self.directory.get_students([score.student_id for score in ordered])

        entries: list[LeaderboardEntry] = []
        for score in ordered:
            student = students.get(score.student_id)
            if student is None:
                continue
            entries.append(
                LeaderboardEntry(
                    position=len(entries) + 1,
                    student=student,
                    total_rating=score.total_rating,
                    average_rating=score.average_rating,
                )
            )
        return entries
