"""Session details - completion statistics and viewability checks."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from results.models.details import SessionDetails, SessionStats
from results.models.roster import CourseRoster
from results.services.context import load_course_roster, load_session
from shared.models.domain import FeedbackQuestion, FeedbackResponse, FeedbackSession, ParticipantType, SessionType
from shared.repositories import FeedbackRepository, RosterRepository

logger = logging.getLogger("results.session_details_service")

# Recipient types that are students, so a RECEIVER grant reaches students
_STUDENT_RECIPIENT_TYPES = frozenset({
    ParticipantType.STUDENTS,
    ParticipantType.TEAMS,
    ParticipantType.OWN_TEAM,
    ParticipantType.OWN_TEAM_MEMBERS,
    ParticipantType.OWN_TEAM_MEMBERS_INCLUDING_SELF,
})

_STUDENT_VIEWER_TYPES = frozenset({
    ParticipantType.STUDENTS,
    ParticipantType.OWN_TEAM_MEMBERS,
    ParticipantType.RECEIVER_TEAM_MEMBERS,
})


class SessionDetailsService:
    """Expected/submitted statistics and completion checks for sessions."""

    def __init__(self, db: DBSession):
        self.db = db
        self.feedback_repo = FeedbackRepository(db)
        self.roster_repo = RosterRepository(db)

    # ── Statistics ──────────────────────────────────────────────

    def get_session_details(self, session: FeedbackSession) -> SessionDetails:
        """
        Expected and submitted respondent counts of a session.

        Standard sessions expect every student when any question is for
        students, plus each instructor who has a question. Private sessions
        expect only their creator.
        """
        questions = self.feedback_repo.get_questions_for_session(session.course_id, session.session_name)
        roster = load_course_roster(self.roster_repo, session.course_id)
        stats = SessionStats()

        if session.session_type == SessionType.STANDARD:
            if any(q.is_for_students for q in questions):
                stats.expected_total += len(roster.students)
            for email in roster.instructors:
                if _questions_for_instructor(session, questions, email):
                    stats.expected_total += 1
            stats.submitted_total = len(session.respondent_students) + len(session.respondent_instructors)

        elif session.session_type == SessionType.PRIVATE:
            creator = session.creator_email
            creator_questions = [
                q for q in _questions_for_instructor(session, questions, creator)
                if roster.get_possible_recipients(q, creator)
            ]
            if creator_questions:
                stats.expected_total = 1
                if self._is_fully_completed(session, roster, creator_questions, creator):
                    stats.submitted_total = 1

        logger.debug(
            f"Session details for {session.course_id}/{session.session_name}: "
            f"{stats.submitted_total}/{stats.expected_total}"
        )
        return SessionDetails(session=session, stats=stats)

    def get_session_details_for_course(self, course_id: str, instructor_email: str) -> list[SessionDetails]:
        """Details of every session in a course, hiding other instructors' private sessions."""
        return [
            self.get_session_details(session)
            for session in self.feedback_repo.get_sessions_for_course(course_id)
            if not session.is_private or session.is_creator(instructor_email)
        ]

    # ── Completion ──────────────────────────────────────────────

    def has_questions_for_students(self, course_id: str, session_name: str) -> bool:
        load_session(self.feedback_repo, course_id, session_name)
        return any(q.is_for_students for q in self.feedback_repo.get_questions_for_session(course_id, session_name))

    def is_completed_by_student(self, session: FeedbackSession, email: str) -> bool:
        """A student completed a session once recorded, or when nothing is asked of students."""
        if email in session.respondent_students:
            return True
        return not self.has_questions_for_students(session.course_id, session.session_name)

    def is_completed_by_instructor(self, course_id: str, session_name: str, email: str) -> bool:
        session = load_session(self.feedback_repo, course_id, session_name)
        if email in session.respondent_instructors:
            return True
        questions = self.feedback_repo.get_questions_for_session(course_id, session_name)
        return not _questions_for_instructor(session, questions, email)

    def is_fully_completed_by_student(self, course_id: str, session_name: str, email: str) -> bool:
        """Every student question answered for every expected recipient."""
        session = load_session(self.feedback_repo, course_id, session_name)
        questions = [
            q for q in self.feedback_repo.get_questions_for_session(course_id, session_name)
            if q.is_for_students
        ]
        roster = load_course_roster(self.roster_repo, course_id)
        return self._is_fully_completed(session, roster, questions, email)

    def is_fully_completed_by_instructor(self, course_id: str, session_name: str, email: str) -> bool:
        """Every question of the instructor answered for every expected recipient."""
        session = load_session(self.feedback_repo, course_id, session_name)
        questions = _questions_for_instructor(
            session, self.feedback_repo.get_questions_for_session(course_id, session_name), email
        )
        roster = load_course_roster(self.roster_repo, course_id)
        return self._is_fully_completed(session, roster, questions, email)

    # ── Viewability ─────────────────────────────────────────────

    def is_viewable_to(self, session: FeedbackSession, email: str, is_instructor: bool) -> bool:
        if session.is_private:
            return session.is_creator(email)
        if is_instructor:
            return True
        return self.is_viewable_to_students(session)

    def is_viewable_to_students(self, session: FeedbackSession, now: Optional[datetime] = None) -> bool:
        """
        Students may view a visible session with questions for them, or with
        creator questions whose responses they can see.
        """
        if not session.is_visible(now):
            return False
        questions = self.feedback_repo.get_questions_for_session(session.course_id, session.session_name)
        if any(q.is_for_students for q in questions):
            return True
        creator_questions = _questions_for_instructor(session, questions, session.creator_email)
        return any(_is_response_visible_to_students(q) for q in creator_questions)

    # ── Private helpers ─────────────────────────────────────────

    def _is_fully_completed(
        self,
        session: FeedbackSession,
        roster: CourseRoster,
        questions: list[FeedbackQuestion],
        email: str,
    ) -> bool:
        given: dict[str, list[FeedbackResponse]] = {}
        for question in questions:
            giver = roster.canonical_identifier(question.giver_type, email)
            if question.giver_type == ParticipantType.TEAMS:
                givers = roster.get_teammate_emails(email) or {email}
            else:
                givers = {email}
            answered = set()
            for giver_email in givers:
                if giver_email not in given:
                    given[giver_email] = self.feedback_repo.get_responses_from_giver(
                        session.course_id, session.session_name, giver_email
                    )
                answered.update(r.recipient_email for r in given[giver_email] if r.question_id == question.id)
            if len(answered) < len(roster.get_possible_recipients(question, giver)):
                return False
        return True


def _questions_for_instructor(
    session: FeedbackSession,
    questions: list[FeedbackQuestion],
    email: str,
) -> list[FeedbackQuestion]:
    is_creator = session.is_creator(email)
    return [q for q in questions if q.is_for_instructor(is_creator)]


def _is_response_visible_to_students(question: FeedbackQuestion) -> bool:
    if question.show_responses_to & _STUDENT_VIEWER_TYPES:
        return True
    return (
        ParticipantType.RECEIVER in question.show_responses_to
        and question.recipient_type in _STUDENT_RECIPIENT_TYPES
    )
