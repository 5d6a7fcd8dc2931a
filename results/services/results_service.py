"""Results aggregation - the responses and comments a viewer may see."""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from sqlalchemy.orm import Session as DBSession

from results.models.bundle import ResponseStatus, ResultsBundle
from results.models.roster import CourseRoster
from results.services.context import load_course_roster, load_session
from results.services.response_status_service import compute_response_status
from results.services.visibility import (
    is_allowed_by_section,
    is_comment_author_visible,
    is_comment_visible,
    is_name_visible,
    is_response_directly_visible,
    is_response_visible,
)
from results.utils.name_resolution import NameTables
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    Instructor,
    ResponseComment,
    Role,
    SectionFilter,
    Student,
)
from shared.repositories import FeedbackRepository, RosterRepository
from shared.utils.constants import ANONYMOUS, PRIVILEGE_VIEW_SESSION_IN_SECTIONS, QUESTION_ID_FOR_RESPONSE_RATE
from shared.utils.exceptions import (
    InconsistentQueryError,
    ParticipantNotFoundException,
    QuestionNotFoundException,
)

logger = logging.getLogger("results.results_service")


class _BundleBuilder:
    """Owns the tables of one results query until they are frozen into a bundle."""

    def __init__(
        self,
        session: FeedbackSession,
        roster: CourseRoster,
        viewer_email: str,
        role: Role,
        section: Optional[str] = None,
        instructor: Optional[Instructor] = None,
        viewer_student: Optional[Student] = None,
    ):
        self.session = session
        self.roster = roster
        self.viewer_email = viewer_email
        self.role = role
        self.section = section
        self.instructor = instructor
        self.viewer_student = viewer_student
        self.teammate_emails = frozenset(roster.get_teammate_emails(viewer_email)) if viewer_student else frozenset()

        self.questions: dict[str, FeedbackQuestion] = {}
        self.responses: list[FeedbackResponse] = []
        self.response_index: dict[str, FeedbackResponse] = {}
        self.tables = NameTables(roster)
        self.visibility: dict[str, tuple[bool, bool]] = {}
        self.comments: dict[str, list[ResponseComment]] = defaultdict(list)
        self.section_teams: dict[str, set[str]] = {}
        self.response_status: Optional[ResponseStatus] = None
        self.complete = True

    def add_question(self, question: FeedbackQuestion) -> None:
        self.questions[question.id] = question

    def is_visible(self, response: FeedbackResponse, question: FeedbackQuestion) -> bool:
        visible = is_response_visible(
            self.viewer_email, self.role, response, question, self.viewer_student, self.teammate_emails
        )
        return visible and is_allowed_by_section(self.instructor, response, question)

    def add_response(self, response: FeedbackResponse, question: FeedbackQuestion) -> None:
        self.add_question(question)
        self.responses.append(response)
        self.response_index[response.id] = response
        self.tables.register(response, question)
        self.visibility[response.id] = (
            is_name_visible(question, response, self.viewer_email, self.role, True, self.roster),
            is_name_visible(question, response, self.viewer_email, self.role, False, self.roster),
        )

    def add_comments(self, comments: Iterable[ResponseComment]) -> None:
        for comment in comments:
            response = self.response_index.get(comment.response_id)
            question = self.questions.get(comment.question_id)
            visible = is_comment_visible(
                self.viewer_email,
                self.role,
                response,
                question,
                comment,
                self.viewer_student,
                self.teammate_emails,
                self.instructor,
            )
            if not visible:
                continue
            if not is_comment_author_visible(comment, response, self.viewer_email, self.roster):
                comment = comment.model_copy(update={"author_email": ANONYMOUS})
            self.comments[comment.response_id].append(comment)

    def add_section_teams(self) -> None:
        """Teams per section the instructor viewer may see."""
        if self.instructor is None:
            return
        for student in self.roster.students.values():
            allowed = self.instructor.is_allowed_for_privilege(
                student.section, self.session.session_name, PRIVILEGE_VIEW_SESSION_IN_SECTIONS
            )
            if allowed and (self.section is None or student.section == self.section):
                self.section_teams.setdefault(student.section, set()).add(student.team)

    def build(self) -> ResultsBundle:
        return ResultsBundle(
            session=self.session,
            roster=self.roster,
            questions=dict(self.questions),
            responses=tuple(self.responses),
            response_comments={
                response_id: tuple(sorted(comments, key=lambda c: c.created_at))
                for response_id, comments in self.comments.items()
            },
            email_name_table=dict(self.tables.names),
            email_last_name_table=dict(self.tables.last_names),
            email_team_name_table=dict(self.tables.team_names),
            section_team_name_table={s: frozenset(t) for s, t in self.section_teams.items()},
            visibility_table=dict(self.visibility),
            response_status=self.response_status,
            complete=self.complete,
            section=self.section,
        )


class FeedbackResultsService:
    """Builds results bundles for instructors and students."""

    def __init__(self, db: DBSession):
        self.db = db
        self.feedback_repo = FeedbackRepository(db)
        self.roster_repo = RosterRepository(db)

    # ── Public API ──────────────────────────────────────────────

    def build_results_for_question(
        self,
        course_id: str,
        session_name: str,
        viewer_email: str,
        question_id: str,
        section: Optional[str] = None,
        include_response_status: bool = True,
    ) -> ResultsBundle:
        """
        Results of a single question for an instructor.

        The pseudo question id "-1" returns only the response status.

        Raises:
            SessionNotFoundException: If the session does not exist
            QuestionNotFoundException: If the question is not in the session
        """
        session = load_session(self.feedback_repo, course_id, session_name)
        roster = load_course_roster(self.roster_repo, course_id)
        if session.is_private and not session.is_creator(viewer_email):
            return ResultsBundle.empty(session, roster)

        builder = _BundleBuilder(
            session,
            roster,
            viewer_email,
            Role.INSTRUCTOR,
            section=section,
            instructor=roster.get_instructor_for_email(viewer_email),
        )

        if question_id == QUESTION_ID_FOR_RESPONSE_RATE:
            if section is None and include_response_status:
                questions = self.feedback_repo.get_questions_for_session(course_id, session_name)
                builder.response_status = compute_response_status(session, roster, questions)
            return builder.build()

        question = self.feedback_repo.get_question(question_id)
        if question is None or (question.course_id, question.session_name) != (course_id, session_name):
            raise QuestionNotFoundException(question_id)
        builder.add_question(question)

        if session.is_private:
            responses = self.feedback_repo.get_responses_for_question(question.id)
        else:
            responses = self.feedback_repo.get_responses_for_question(question.id, section)

        for response in responses:
            visible = is_response_directly_visible(viewer_email, Role.INSTRUCTOR, response, question)
            if visible and is_allowed_by_section(builder.instructor, response, question):
                builder.add_response(response, question)

        builder.add_comments(self.feedback_repo.get_comments_for_session(course_id, session_name, section))
        builder.add_section_teams()

        bundle = builder.build()
        logger.info(
            f"Built question results for {course_id}/{session_name} q={question_id}: "
            f"{len(bundle.responses)}/{len(responses)} responses visible to {viewer_email}"
        )
        return bundle

    def build_results_for_section_within_range(
        self,
        course_id: str,
        session_name: str,
        viewer_email: str,
        role: Role,
        section_filter: Optional[SectionFilter],
        section: Optional[str] = None,
        limit: Optional[int] = None,
        include_response_status: bool = True,
        include_comments: bool = True,
    ) -> ResultsBundle:
        """
        Results of a whole session, optionally bounded to ``limit`` responses.

        When more than ``limit`` responses match, the bundle is returned with
        ``complete=False`` and only the question map filled in.

        Raises:
            InconsistentQueryError: If no section filter is given
            SessionNotFoundException: If the session does not exist
            ParticipantNotFoundException: If a student viewer is not enrolled
        """
        if section_filter is None:
            raise InconsistentQueryError("Client did not indicate the origin of the responses")

        session = load_session(self.feedback_repo, course_id, session_name)
        roster = load_course_roster(self.roster_repo, course_id)
        if session.is_private and not session.is_creator(viewer_email):
            return ResultsBundle.empty(session, roster)

        questions = self.feedback_repo.get_questions_for_session(course_id, session_name)
        questions_by_id = {q.id: q for q in questions}
        builder = self._new_builder(session, roster, viewer_email, role, section)

        if role == Role.INSTRUCTOR:
            for question in questions:
                builder.add_question(question)

        fetch_limit = None if limit is None else limit + 1
        responses = self.feedback_repo.get_responses_for_session(
            course_id, session_name, section_filter, section, fetch_limit
        )
        if limit is not None and len(responses) > limit:
            logger.info(
                f"Results for {course_id}/{session_name} exceed range {limit}; returning questions only"
            )
            for question in questions:
                builder.add_question(question)
            builder.complete = False
            return builder.build()

        if section is None and include_response_status:
            builder.response_status = compute_response_status(session, roster, questions)

        for response in responses:
            question = questions_by_id.get(response.question_id)
            if question is not None and builder.is_visible(response, question):
                builder.add_response(response, question)

        if include_comments:
            builder.add_comments(self.feedback_repo.get_comments_for_session(course_id, session_name, section))
        builder.add_section_teams()

        bundle = builder.build()
        logger.info(
            f"Built session results for {course_id}/{session_name} ({section_filter.value}, section={section}): "
            f"{len(bundle.responses)}/{len(responses)} responses visible to {viewer_email}"
        )
        return bundle

    def build_results_for_user_by_questions(
        self,
        course_id: str,
        session_name: str,
        viewer_email: str,
        role: Role,
        section: Optional[str] = None,
    ) -> ResultsBundle:
        """
        Results of a session gathered question by question.

        Only questions with at least one visible response are included.

        Raises:
            SessionNotFoundException: If the session does not exist
            ParticipantNotFoundException: If a student viewer is not enrolled
        """
        session = load_session(self.feedback_repo, course_id, session_name)
        roster = load_course_roster(self.roster_repo, course_id)
        if session.is_private and not session.is_creator(viewer_email):
            return ResultsBundle.empty(session, roster)

        builder = self._new_builder(session, roster, viewer_email, role, section)
        is_private_creator = session.is_private and session.is_creator(viewer_email)

        for question in self.feedback_repo.get_questions_for_session(course_id, session_name):
            if is_private_creator:
                responses = self.feedback_repo.get_responses_for_question(question.id)
            else:
                responses = [
                    r for r in self.feedback_repo.get_responses_for_question(question.id, section)
                    if builder.is_visible(r, question)
                ]
            for response in responses:
                builder.add_response(response, question)

        builder.add_comments(self.feedback_repo.get_comments_for_session(course_id, session_name))
        builder.add_section_teams()

        bundle = builder.build()
        logger.info(
            f"Built results by question for {course_id}/{session_name}: "
            f"{len(bundle.questions)} questions, {len(bundle.responses)} responses for {viewer_email}"
        )
        return bundle

    # ── Private helpers ─────────────────────────────────────────

    def _new_builder(
        self,
        session: FeedbackSession,
        roster: CourseRoster,
        viewer_email: str,
        role: Role,
        section: Optional[str],
    ) -> _BundleBuilder:
        viewer_student = None
        instructor = None
        if role == Role.STUDENT:
            viewer_student = roster.get_student_for_email(viewer_email)
            if viewer_student is None:
                raise ParticipantNotFoundException(session.course_id, viewer_email)
        else:
            instructor = roster.get_instructor_for_email(viewer_email)
        return _BundleBuilder(
            session,
            roster,
            viewer_email,
            role,
            section=section,
            instructor=instructor,
            viewer_student=viewer_student,
        )
