"""Response status - who has not yet responded to a session."""

import logging

from sqlalchemy.orm import Session as DBSession

from results.models.bundle import ResponseStatus
from results.models.roster import CourseRoster
from results.services.context import load_course_roster, load_session
from shared.models.domain import FeedbackQuestion, FeedbackSession
from shared.repositories import FeedbackRepository, RosterRepository

logger = logging.getLogger("results.response_status_service")


class ResponseStatusService:
    """Builds the not-responded list of a session from its recorded respondents."""

    def __init__(self, db: DBSession):
        self.db = db
        self.feedback_repo = FeedbackRepository(db)
        self.roster_repo = RosterRepository(db)

    def build_response_status(self, course_id: str, session_name: str) -> ResponseStatus:
        """
        Build the response status of a session.

        Args:
            course_id: Course identifier
            session_name: Session name

        Returns:
            ResponseStatus with the not-responded list and display tables

        Raises:
            SessionNotFoundException: If the session does not exist
        """
        session = load_session(self.feedback_repo, course_id, session_name)
        roster = load_course_roster(self.roster_repo, course_id)
        questions = self.feedback_repo.get_questions_for_session(course_id, session_name)
        status = compute_response_status(session, roster, questions)
        logger.info(
            f"Response status for {course_id}/{session_name}: "
            f"{len(status.no_response)} not responded"
        )
        return status


def compute_response_status(
    session: FeedbackSession,
    roster: CourseRoster,
    questions: list[FeedbackQuestion],
) -> ResponseStatus:
    """
    Not-responded list of a session.

    The session's recorded respondent sets are taken as given; actual
    responses are never walked.
    """
    names: dict[str, str] = {}
    sections: dict[str, str] = {}
    teams: dict[str, str] = {}

    student_no_response: list[str] = []
    if any(q.is_for_students for q in questions):
        for email in sorted(roster.students):
            student = roster.students[email]
            student_no_response.append(email)
            names[email] = student.name
            sections[email] = student.section
            teams[email] = student.team
    student_no_response = [e for e in student_no_response if e not in session.respondent_students]

    instructor_no_response: list[str] = []
    for email in sorted(roster.instructors):
        has_questions = any(q.is_for_instructor(session.is_creator(email)) for q in questions)
        if has_questions and email not in names:
            instructor_no_response.append(email)
            names[email] = roster.instructors[email].name
    instructor_no_response = [e for e in instructor_no_response if e not in session.respondent_instructors]

    return ResponseStatus(
        no_response=tuple(student_no_response + instructor_no_response),
        email_name_table=names,
        email_section_table=sections,
        email_team_name_table=teams,
    )
