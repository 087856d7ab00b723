"""Verified caller identities."""

from dataclasses import dataclass

STUDENT = "student"
ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Who is making a request, as established by a verified token.

    Students are identified by their student id; admins by username and
    carry no student id.
    """

    kind: str
    student_id: int | None = None
    username: str | None = None

    @property
    def is_student(self) -> bool:
        return self.kind == STUDENT and self.student_id is not None

    @property
    def is_admin(self) -> bool:
        return self.kind == ADMIN

    @property
    def subject(self) -> str:
        if self.is_student:
            return f"{STUDENT}:{self.student_id}"
        return f"{ADMIN}:{self.username}"

    @classmethod
    def student(cls, student_id: int) -> "Principal":
        return cls(kind=STUDENT, student_id=student_id)

    @classmethod
    def admin(cls, username: str) -> "Principal":
        return cls(kind=ADMIN, username=username)
