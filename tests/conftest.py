import os
from types import SimpleNamespace

os.environ.setdefault('DATABASE_URL', 'sqlite://')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from peerrank.database import Base  # noqa: E402
from peerrank.models.question import Question  # noqa: E402
from peerrank.models.rating import Rating  # noqa: E402, F401
from peerrank.models.room import Room, RoomAssignment  # noqa: E402
from peerrank.models.student import Student  # noqa: E402
from peerrank.services.locks import TripleLocks  # noqa: E402
from peerrank.services.ranking import RankingService  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def classroom(db):
    """Two rooms, three questions and five students; the first four sit in ``room``."""
    room = Room(room_name='Physics 101', branch='Science', section='A')
    other_room = Room(room_name='Chemistry 201', branch='Science', section='B')
    db.add_all([room, other_room])
    db.flush()

    q1 = Question(room_id=room.id, question_text='Who explains concepts most clearly?')
    q2 = Question(room_id=room.id, question_text='Who is the most helpful lab partner?')
    q_other = Question(room_id=other_room.id, question_text='Who keeps the best notes?')
    students = [
        Student(student_number=f'S{number:03d}', name=name, email=f'{name.lower()}@example.edu')
        for number, name in enumerate(['Ada', 'Grace', 'Alan', 'Edsger', 'Barbara'], start=1)
    ]
    db.add_all([q1, q2, q_other, *students])
    db.flush()

    for student in students[:4]:
        db.add(RoomAssignment(room_id=room.id, student_id=student.id))
    db.commit()

    return SimpleNamespace(
        room=room,
        other_room=other_room,
        q1=q1,
        q2=q2,
        q_other=q_other,
        students=students,
    )


@pytest.fixture
def locks():
    return TripleLocks(8)


@pytest.fixture
def service(db, locks):
    return RankingService(
        db,
        locks,
        allow_tied_ranks=True,
        require_room_membership=False,
        leaderboard_order='descending',
    )
