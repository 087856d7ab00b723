"""The two operations offered to the rest of the application."""

from sqlalchemy.orm import Session

from peerrank.auth.principal import Principal
from peerrank.services.aggregator import Aggregator, LeaderboardEntry
from peerrank.services.directory import Directory
from peerrank.services.ledger import RatingLedger
from peerrank.services.locks import TripleLocks
from peerrank.services.submission_guard import SubmissionGuard, SubmissionResult


class RankingService:
    """Submit ratings and read leaderboards.

    The rater of a submission is always the principal passed in, which the
    route layer takes from the verified bearer token.
    """

    def __init__(
        self,
        db: Session,
        locks: TripleLocks,
        allow_tied_ranks: bool | None = None,
        require_room_membership: bool | None = None,
        leaderboard_order: str | None = None,
    ):
        self.directory = Directory(db)
        self.ledger = RatingLedger(db)
        self.guard = SubmissionGuard(
            self.ledger,
            self.directory,
            locks,
            allow_tied_ranks=allow_tied_ranks,
            require_room_membership=require_room_membership,
        )
        self.aggregator = Aggregator(self.ledger, self.directory, order=leaderboard_order)

    def submit_rating(
        self,
        principal: Principal,
        room_id: int,
        question_id: int,
        rated_student_id: int,
        rank: int,
    ) -> SubmissionResult:
        return self.guard.submit(room_id, question_id, rated_student_id, principal, rank)

    def get_leaderboard(self, room_id: int, question_id: int | None = None) -> list[LeaderboardEntry]:
        return self.aggregator.leaderboard(room_id, question_id)
