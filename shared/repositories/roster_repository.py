"""Roster data access layer - students and instructors of a course."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import Instructor, InstructorPrivileges, Student
from shared.models.entities import InstructorRecord, StudentRecord
from shared.utils.exceptions import DatabaseException

logger = logging.getLogger(__name__)


class RosterRepository:
    """Repository for student and instructor lookups."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_student_for_email(self, course_id: str, email: str) -> Optional[Student]:
        """
        Retrieve a student by email.

        Args:
            course_id: Course identifier
            email: Student email

        Returns:
            Student if enrolled, None otherwise
        """
        record = (
            self.db.query(StudentRecord)
            .filter(StudentRecord.course_id == course_id, StudentRecord.email == email)
            .first()
        )
        return _student_to_domain(record) if record else None

    def get_instructor_for_email(self, course_id: str, email: str) -> Optional[Instructor]:
        """
        Retrieve an instructor by email.

        Args:
            course_id: Course identifier
            email: Instructor email

        Returns:
            Instructor if found, None otherwise
        """
        record = (
            self.db.query(InstructorRecord)
            .filter(InstructorRecord.course_id == course_id, InstructorRecord.email == email)
            .first()
        )
        return _instructor_to_domain(record) if record else None

    def get_students_for_team(self, course_id: str, team: str) -> list[Student]:
        rows = (
            self.db.query(StudentRecord)
            .filter(StudentRecord.course_id == course_id, StudentRecord.team == team)
            .order_by(StudentRecord.email)
            .all()
        )
        return [_student_to_domain(r) for r in rows]

    def get_students_for_course(self, course_id: str) -> list[Student]:
        rows = (
            self.db.query(StudentRecord)
            .filter(StudentRecord.course_id == course_id)
            .order_by(StudentRecord.email)
            .all()
        )
        return [_student_to_domain(r) for r in rows]

    def get_instructors_for_course(self, course_id: str) -> list[Instructor]:
        rows = (
            self.db.query(InstructorRecord)
            .filter(InstructorRecord.course_id == course_id)
            .order_by(InstructorRecord.email)
            .all()
        )
        return [_instructor_to_domain(r) for r in rows]

    def create_student(self, student: Student) -> Student:
        """Enrol a student. Raises DatabaseException on failure."""
        record = StudentRecord(
            course_id=student.course_id,
            email=student.email,
            name=student.name,
            last_name=student.last_name,
            team=student.team,
            section=student.section,
        )
        self._add(record, "insert student")
        return student

    def create_instructor(self, instructor: Instructor) -> Instructor:
        """Add an instructor. Raises DatabaseException on failure."""
        record = InstructorRecord(
            course_id=instructor.course_id,
            email=instructor.email,
            name=instructor.name,
            privileges_json=instructor.privileges.model_dump_json(),
        )
        self._add(record, "insert instructor")
        return instructor

    def _add(self, record, operation: str) -> None:
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Roster {operation} failed: {e}")
            raise DatabaseException(operation, e)


def _student_to_domain(record: StudentRecord) -> Student:
    return Student(
        email=record.email,
        course_id=record.course_id,
        name=record.name,
        last_name=record.last_name,
        team=record.team,
        section=record.section,
    )


def _instructor_to_domain(record: InstructorRecord) -> Instructor:
    if record.privileges_json:
        privileges = InstructorPrivileges.model_validate_json(record.privileges_json)
    else:
        privileges = InstructorPrivileges()
    return Instructor(
        email=record.email,
        course_id=record.course_id,
        name=record.name,
        privileges=privileges,
    )
