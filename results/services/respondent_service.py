"""Respondent tracking - keeps the per-session responded sets consistent."""

import logging

from sqlalchemy.orm import Session as DBSession

from results.services.context import load_session
from shared.models.domain import RespondentKind
from shared.repositories import FeedbackRepository, RespondentRepository, RosterRepository

logger = logging.getLogger("results.respondent_service")


class RespondentService:
    """Maintains who has responded when responses or participants change."""

    def __init__(self, db: DBSession):
        self.db = db
        self.feedback_repo = FeedbackRepository(db)
        self.roster_repo = RosterRepository(db)
        self.respondent_repo = RespondentRepository(db)

    # ── Single session ──────────────────────────────────────────

    def add_respondent(self, course_id: str, session_name: str, email: str, kind: RespondentKind) -> None:
        load_session(self.feedback_repo, course_id, session_name)
        if self.respondent_repo.add_respondent(course_id, session_name, email, kind):
            logger.info(f"Recorded {kind.value} respondent {email} for {course_id}/{session_name}")

    def add_respondents(self, course_id: str, session_name: str, emails: list[str], kind: RespondentKind) -> int:
        load_session(self.feedback_repo, course_id, session_name)
        return self.respondent_repo.add_respondents(course_id, session_name, emails, kind)

    def delete_respondent(self, course_id: str, session_name: str, email: str, kind: RespondentKind) -> None:
        load_session(self.feedback_repo, course_id, session_name)
        self.respondent_repo.remove_respondent(course_id, session_name, email, kind)

    def clear_respondents(self, course_id: str, session_name: str) -> None:
        load_session(self.feedback_repo, course_id, session_name)
        removed = self.respondent_repo.clear_respondents(course_id, session_name)
        logger.info(f"Cleared {removed} respondents for {course_id}/{session_name}")

    def update_respondents_for_session(self, course_id: str, session_name: str) -> tuple[set[str], set[str]]:
        """
        Rebuild a session's responded sets from its stored responses.

        A response counts for an instructor when its question is one the
        instructor is expected to answer; every other giver is a student.

        Returns:
            (student respondents, instructor respondents)
        """
        session = load_session(self.feedback_repo, course_id, session_name)
        questions = self.feedback_repo.get_questions_for_session(course_id, session_name)

        instructor_questions: dict[str, set[str]] = {}
        for instructor in self.roster_repo.get_instructors_for_course(course_id):
            question_ids = {
                q.id for q in questions if q.is_for_instructor(session.is_creator(instructor.email))
            }
            if question_ids:
                instructor_questions[instructor.email] = question_ids

        students: set[str] = set()
        instructors: set[str] = set()
        for response in self.feedback_repo.get_responses_for_session(course_id, session_name):
            if response.question_id in instructor_questions.get(response.giver_email, set()):
                instructors.add(response.giver_email)
            else:
                students.add(response.giver_email)

        self.respondent_repo.replace_respondents(course_id, session_name, students, instructors)

        logger.info(
            f"Rebuilt respondents for {course_id}/{session_name}: "
            f"{len(students)} students, {len(instructors)} instructors"
        )
        return students, instructors

    # ── Whole course ────────────────────────────────────────────

    def update_respondents_for_course(self, course_id: str, old_email: str, new_email: str) -> int:
        """Carry a participant's email change into every session of the course."""
        renamed = self.respondent_repo.rename_respondent(course_id, old_email, new_email)
        logger.info(f"Renamed respondent {old_email} -> {new_email} in {renamed} sessions of {course_id}")
        return renamed

    def delete_from_respondents_list(self, course_id: str, email: str) -> int:
        """Forget a deleted participant in every session of the course."""
        if not email:
            return 0
        return self.respondent_repo.delete_respondent_from_course(course_id, email)
