import pytest

from peerrank.auth.principal import Principal
from peerrank.core.errors import NotFoundError
from peerrank.models.question import Question
from peerrank.models.rating import Rating
from peerrank.models.room import Room
from peerrank.services.aggregator import StudentScore, order_scores
from peerrank.services.ranking import RankingService
from peerrank.services.submission_guard import MAX_STORED_INT


def rate(service, classroom, rater, student, rank, question=None) -> None:
    question = question or classroom.q1
    service.submit_rating(Principal.student(rater.id), classroom.room.id, question.id, student.id, rank)


def test_total_and_average_for_one_question(service, classroom) -> None:
    ada, grace, alan, edsger = classroom.students[:4]
    rate(service, classroom, grace, ada, 1)
    rate(service, classroom, alan, ada, 2)
    rate(service, classroom, edsger, ada, 3)

    leaderboard = service.get_leaderboard(classroom.room.id)

    assert len(leaderboard) == 1
    entry = leaderboard[0]
    assert entry.position == 1
    assert entry.student.id == ada.id
    assert entry.total_rating == 6
    assert entry.average_rating == 2.0


def test_totals_of_largest_ranks_do_not_overflow(service, classroom) -> None:
    ada, grace, alan, edsger = classroom.students[:4]
    rate(service, classroom, grace, ada, MAX_STORED_INT)
    rate(service, classroom, alan, ada, MAX_STORED_INT)
    rate(service, classroom, edsger, ada, MAX_STORED_INT, question=classroom.q2)

    entry = service.get_leaderboard(classroom.room.id)[0]

    assert entry.total_rating == 3 * MAX_STORED_INT
    assert entry.average_rating == float(MAX_STORED_INT)


def test_question_filter_excludes_other_questions(service, classroom) -> None:
    ada, grace = classroom.students[0], classroom.students[1]
    rate(service, classroom, grace, ada, 1, question=classroom.q1)

    assert service.get_leaderboard(classroom.room.id, classroom.q2.id) == []
    assert [entry.student.id for entry in service.get_leaderboard(classroom.room.id, classroom.q1.id)] == [ada.id]


def test_room_leaderboard_aggregates_every_question(service, classroom) -> None:
    ada, grace = classroom.students[0], classroom.students[1]
    rate(service, classroom, grace, ada, 1, question=classroom.q1)
    rate(service, classroom, grace, ada, 4, question=classroom.q2)

    entry = service.get_leaderboard(classroom.room.id)[0]

    assert entry.total_rating == 5
    assert entry.average_rating == 2.5


def test_students_without_ratings_are_omitted(service, classroom) -> None:
    ada, grace = classroom.students[0], classroom.students[1]
    rate(service, classroom, grace, ada, 1)

    student_ids = [entry.student.id for entry in service.get_leaderboard(classroom.room.id)]

    assert student_ids == [ada.id]


def test_orders_by_average_descending_by_default(service, classroom) -> None:
    ada, grace, alan, edsger = classroom.students[:4]
    # Ada averages 1.5, Grace averages 2.0.
    rate(service, classroom, alan, ada, 1)
    rate(service, classroom, edsger, ada, 2)
    rate(service, classroom, alan, grace, 2)
    rate(service, classroom, edsger, grace, 2)

    leaderboard = service.get_leaderboard(classroom.room.id)

    assert [(entry.position, entry.student.id) for entry in leaderboard] == [(1, grace.id), (2, ada.id)]


def test_ascending_order_puts_lowest_average_first(db, locks, classroom) -> None:
    service = RankingService(db, locks, leaderboard_order='ascending')
    ada, grace, alan, edsger = classroom.students[:4]
    rate(service, classroom, alan, ada, 1)
    rate(service, classroom, edsger, ada, 2)
    rate(service, classroom, alan, grace, 2)
    rate(service, classroom, edsger, grace, 2)

    leaderboard = service.get_leaderboard(classroom.room.id)

    assert [(entry.position, entry.student.id, entry.average_rating) for entry in leaderboard] == [
        (1, ada.id, 1.5),
        (2, grace.id, 2.0),
    ]


def test_equal_averages_are_ordered_by_student_id(service, classroom) -> None:
    ada, grace, alan, edsger = classroom.students[:4]
    rate(service, classroom, edsger, alan, 2)
    rate(service, classroom, edsger, ada, 2)
    rate(service, classroom, edsger, grace, 2)

    leaderboard = service.get_leaderboard(classroom.room.id)

    assert [entry.student.id for entry in leaderboard] == sorted([ada.id, grace.id, alan.id])
    assert [entry.position for entry in leaderboard] == [1, 2, 3]


def test_leaderboard_is_repeatable(service, classroom) -> None:
    ada, grace, alan = classroom.students[:3]
    rate(service, classroom, grace, ada, 1)
    rate(service, classroom, grace, alan, 2)

    first = service.get_leaderboard(classroom.room.id)
    second = service.get_leaderboard(classroom.room.id)

    assert first == second


def test_deleted_question_ratings_leave_the_leaderboard(service, classroom, db) -> None:
    ada, grace, alan = classroom.students[:3]
    rate(service, classroom, grace, ada, 1, question=classroom.q1)
    rate(service, classroom, grace, alan, 3, question=classroom.q2)

    q1_id = classroom.q1.id
    service.ledger.purge_question(q1_id)
    db.query(Question).filter(Question.id == q1_id).delete(synchronize_session=False)
    db.commit()

    leaderboard = service.get_leaderboard(classroom.room.id)

    assert db.query(Rating).filter(Rating.question_id == q1_id).count() == 0
    assert [entry.student.id for entry in leaderboard] == [alan.id]


def test_missing_room_is_reported(service) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        service.get_leaderboard(999)

    assert exception_info.value.message == 'Room not found.'


def test_empty_room_gives_empty_leaderboard(service, classroom) -> None:
    assert service.get_leaderboard(classroom.other_room.id) == []


@pytest.mark.parametrize('question_attr', ['q_other', None])
def test_question_outside_room_is_reported(service, classroom, question_attr) -> None:
    question_id = getattr(classroom, question_attr).id if question_attr else 999

    with pytest.raises(NotFoundError):
        service.get_leaderboard(classroom.room.id, question_id)


def test_ratings_stay_scoped_to_their_room(service, classroom, db) -> None:
    ada, grace = classroom.students[0], classroom.students[1]
    rate(service, classroom, grace, ada, 1)
    service.submit_rating(Principal.student(grace.id), classroom.other_room.id, classroom.q_other.id, ada.id, 5)

    physics = service.get_leaderboard(classroom.room.id)
    chemistry = service.get_leaderboard(classroom.other_room.id)

    assert physics[0].total_rating == 1
    assert chemistry[0].total_rating == 5
    assert db.query(Room).count() == 2


def test_order_scores_breaks_ties_by_student_id() -> None:
    scores = [
        StudentScore(student_id=3, total_rating=4, rating_count=2),
        StudentScore(student_id=1, total_rating=2, rating_count=1),
        StudentScore(student_id=2, total_rating=9, rating_count=3),
    ]

    assert [score.student_id for score in order_scores(scores)] == [2, 1, 3]
    assert [score.student_id for score in order_scores(scores, 'ascending')] == [1, 3, 2]
