"""Respondent tracking data access layer."""
import logging
from typing import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import RespondentKind
from shared.models.entities import SessionRespondentRecord
from shared.utils.exceptions import DatabaseException

logger = logging.getLogger(__name__)


class RespondentRepository:
    """
    Repository for the per-session responded sets.

    Every write is idempotent: adding a respondent twice or removing a
    respondent that is not recorded leaves the set unchanged.
    """

    def __init__(self, db: DBSession):
        self.db = db

    # ── Reads ──────────────────────────────────────────────

    def get_student_respondents(self, course_id: str, session_name: str) -> set[str]:
        return self._get_respondents(course_id, session_name, RespondentKind.STUDENT)

    def get_instructor_respondents(self, course_id: str, session_name: str) -> set[str]:
        return self._get_respondents(course_id, session_name, RespondentKind.INSTRUCTOR)

    # ── Writes ─────────────────────────────────────────────

    def add_respondent(
        self,
        course_id: str,
        session_name: str,
        email: str,
        kind: RespondentKind,
    ) -> bool:
        """
        Record that a giver has submitted at least one response.

        Args:
            course_id: Course identifier
            session_name: Session name
            email: Giver identifier
            kind: Student or instructor set

        Returns:
            True if a row was inserted, False if it was already recorded
        """
        if self._exists(course_id, session_name, email, kind):
            return False

        record = SessionRespondentRecord(
            course_id=course_id,
            session_name=session_name,
            email=email,
            kind=kind.value,
        )
        try:
            self.db.add(record)
            self.db.commit()
            return True
        except IntegrityError:
            # A concurrent writer recorded the same respondent first
            self.db.rollback()
            logger.debug(f"Respondent {email} already recorded for {course_id}/{session_name}")
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("add respondent", e)

    def add_respondents(
        self,
        course_id: str,
        session_name: str,
        emails: Iterable[str],
        kind: RespondentKind,
    ) -> int:
        """Record several respondents. Returns the number newly inserted."""
        added = 0
        for email in emails:
            if self.add_respondent(course_id, session_name, email, kind):
                added += 1
        return added

    def remove_respondent(
        self,
        course_id: str,
        session_name: str,
        email: str,
        kind: RespondentKind,
    ) -> bool:
        deleted = self._delete(
            "remove respondent",
            SessionRespondentRecord.course_id == course_id,
            SessionRespondentRecord.session_name == session_name,
            SessionRespondentRecord.email == email,
            SessionRespondentRecord.kind == kind.value,
        )
        return deleted > 0

    def clear_respondents(self, course_id: str, session_name: str) -> int:
        """Drop both responded sets of a session."""
        return self._delete(
            "clear respondents",
            SessionRespondentRecord.course_id == course_id,
            SessionRespondentRecord.session_name == session_name,
        )

    def replace_respondents(
        self,
        course_id: str,
        session_name: str,
        students: Iterable[str],
        instructors: Iterable[str],
    ) -> None:
        """
        Overwrite both responded sets of a session in a single commit.

        On failure nothing is written and the previous sets are kept.
        """
        rows = [(email, RespondentKind.INSTRUCTOR) for email in sorted(set(instructors))]
        rows += [(email, RespondentKind.STUDENT) for email in sorted(set(students))]
        try:
            (
                self.db.query(SessionRespondentRecord)
                .filter(
                    SessionRespondentRecord.course_id == course_id,
                    SessionRespondentRecord.session_name == session_name,
                )
                .delete(synchronize_session=False)
            )
            for email, kind in rows:
                self.db.add(
                    SessionRespondentRecord(
                        course_id=course_id,
                        session_name=session_name,
                        email=email,
                        kind=kind.value,
                    )
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("replace respondents", e)

    def delete_respondent_from_course(self, course_id: str, email: str) -> int:
        """Remove a participant from the responded sets of every session in a course."""
        return self._delete(
            "delete respondent",
            SessionRespondentRecord.course_id == course_id,
            SessionRespondentRecord.email == email,
        )

    def rename_respondent(self, course_id: str, old_email: str, new_email: str) -> int:
        """
        Replace a respondent identifier in every session of a course.

        Rows that would collide with an existing entry for the new identifier
        are dropped instead of renamed.

        Returns:
            Number of rows renamed
        """
        rows = (
            self.db.query(SessionRespondentRecord)
            .filter(
                SessionRespondentRecord.course_id == course_id,
                SessionRespondentRecord.email == old_email,
            )
            .all()
        )
        renamed = 0
        try:
            for row in rows:
                clash = self._exists(row.course_id, row.session_name, new_email, RespondentKind(row.kind))
                if clash:
                    self.db.delete(row)
                else:
                    row.email = new_email
                    renamed += 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("rename respondent", e)
        return renamed

    # ── Private helpers ───────────────────────────────────

    def _get_respondents(self, course_id: str, session_name: str, kind: RespondentKind) -> set[str]:
        rows = (
            self.db.query(SessionRespondentRecord.email)
            .filter(
                SessionRespondentRecord.course_id == course_id,
                SessionRespondentRecord.session_name == session_name,
                SessionRespondentRecord.kind == kind.value,
            )
            .all()
        )
        return {row.email for row in rows}

    def _exists(self, course_id: str, session_name: str, email: str, kind: RespondentKind) -> bool:
        return (
            self.db.query(SessionRespondentRecord.id)
            .filter(
                SessionRespondentRecord.course_id == course_id,
                SessionRespondentRecord.session_name == session_name,
                SessionRespondentRecord.email == email,
                SessionRespondentRecord.kind == kind.value,
            )
            .first()
            is not None
        )

    def _delete(self, operation: str, *criteria) -> int:
        try:
            deleted = (
                self.db.query(SessionRespondentRecord)
                .filter(*criteria)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(operation, e)
