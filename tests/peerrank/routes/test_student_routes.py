import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from peerrank.auth.principal import Principal
from peerrank.models.rating import Rating
from peerrank.models.room import RoomAssignment
from peerrank.models.student import Student
from peerrank.routes.student_routes import (
    CreateStudentRequest,
    create_student,
    delete_student,
    list_students,
)

ADMIN = Principal.admin('admin')


def test_create_student_request_normalizes_email() -> None:
    request = CreateStudentRequest(student_number=' S100 ', name=' Katherine ', email=' KJ@Example.EDU ')

    assert request.student_number == 'S100'
    assert request.name == 'Katherine'
    assert request.email == 'kj@example.edu'


def test_create_student_request_rejects_bad_email() -> None:
    with pytest.raises(ValidationError):
        CreateStudentRequest(student_number='S100', name='Katherine', email='not-an-email')


@pytest.mark.parametrize(
    ('student_number', 'email', 'detail'),
    [
        ('S001', 'new@example.edu', 'Student number already exists.'),
        ('S100', 'ada@example.edu', 'Email already exists.'),
    ],
)
def test_create_student_rejects_duplicates(classroom, db, student_number, email, detail) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_student(
            CreateStudentRequest(student_number=student_number, name='Katherine', email=email),
            principal=ADMIN,
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == detail


def test_list_students_reports_room(classroom, db) -> None:
    students = {student.student_number: student for student in list_students(principal=ADMIN, db=db)}

    assert students['S001'].room_name == 'Physics 101'
    assert students['S005'].room_id is None


def test_delete_student_removes_assignment_and_ratings(service, classroom, db) -> None:
    ada, grace, alan = classroom.students[:3]
    service.submit_rating(Principal.student(grace.id), classroom.room.id, classroom.q1.id, ada.id, 1)
    service.submit_rating(Principal.student(ada.id), classroom.room.id, classroom.q1.id, alan.id, 1)
    service.submit_rating(Principal.student(grace.id), classroom.room.id, classroom.q1.id, alan.id, 2)
    ada_id = ada.id

    delete_student(student_id=ada_id, principal=ADMIN, db=db)

    assert db.query(Student).filter(Student.id == ada_id).count() == 0
    assert db.query(RoomAssignment).filter(RoomAssignment.student_id == ada_id).count() == 0
    assert db.query(Rating).count() == 1
    assert [entry.student.id for entry in service.get_leaderboard(classroom.room.id)] == [alan.id]
