"""Feedback session, question, response and comment data access layer."""
import json
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    ParticipantType,
    ResponseComment,
    SectionFilter,
)
from shared.models.entities import (
    FeedbackQuestionRecord,
    FeedbackResponseRecord,
    FeedbackSessionRecord,
    ResponseCommentRecord,
)
from shared.repositories.respondent_repository import RespondentRepository
from shared.utils.exceptions import DatabaseException

logger = logging.getLogger(__name__)


class FeedbackRepository:
    """Repository for the question/response store of feedback sessions."""

    def __init__(self, db: DBSession):
        self.db = db

    # ── Sessions ───────────────────────────────────────────

    def get_session(self, course_id: str, session_name: str) -> Optional[FeedbackSession]:
        """
        Retrieve a session together with its recorded respondent sets.

        Args:
            course_id: Course identifier
            session_name: Session name

        Returns:
            FeedbackSession if found, None otherwise
        """
        record = (
            self.db.query(FeedbackSessionRecord)
            .filter(
                FeedbackSessionRecord.course_id == course_id,
                FeedbackSessionRecord.session_name == session_name,
            )
            .first()
        )
        if record is None:
            return None

        respondents = RespondentRepository(self.db)
        return FeedbackSession(
            course_id=record.course_id,
            session_name=record.session_name,
            session_type=record.session_type,
            creator_email=record.creator_email,
            instructions=record.instructions or "",
            visible_time=record.visible_time,
            publish_time=record.publish_time,
            respondent_students=respondents.get_student_respondents(course_id, session_name),
            respondent_instructors=respondents.get_instructor_respondents(course_id, session_name),
        )

    def get_sessions_for_course(self, course_id: str) -> list[FeedbackSession]:
        rows = (
            self.db.query(FeedbackSessionRecord.session_name)
            .filter(FeedbackSessionRecord.course_id == course_id)
            .order_by(FeedbackSessionRecord.session_name)
            .all()
        )
        return [self.get_session(course_id, row.session_name) for row in rows]

    def create_session(self, session: FeedbackSession) -> FeedbackSession:
        record = FeedbackSessionRecord(
            course_id=session.course_id,
            session_name=session.session_name,
            session_type=session.session_type.value,
            creator_email=session.creator_email,
            instructions=session.instructions,
            visible_time=session.visible_time,
            publish_time=session.publish_time,
        )
        self._add(record, "insert session")
        return session

    # ── Questions ──────────────────────────────────────────

    def get_questions_for_session(self, course_id: str, session_name: str) -> list[FeedbackQuestion]:
        """Questions of a session ordered by question number."""
        rows = (
            self.db.query(FeedbackQuestionRecord)
            .filter(
                FeedbackQuestionRecord.course_id == course_id,
                FeedbackQuestionRecord.session_name == session_name,
            )
            .order_by(FeedbackQuestionRecord.question_number)
            .all()
        )
        return [_question_to_domain(r) for r in rows]

    def get_question(self, question_id: str) -> Optional[FeedbackQuestion]:
        record = self.db.query(FeedbackQuestionRecord).filter(FeedbackQuestionRecord.id == question_id).first()
        return _question_to_domain(record) if record else None

    def create_question(self, question: FeedbackQuestion) -> FeedbackQuestion:
        record = FeedbackQuestionRecord(
            id=question.id,
            course_id=question.course_id,
            session_name=question.session_name,
            question_number=question.question_number,
            question_text=question.question_text,
            question_type=question.question_type.value,
            options_json=json.dumps(question.options),
            giver_type=question.giver_type.value,
            recipient_type=question.recipient_type.value,
            show_responses_to_json=_dump_types(question.show_responses_to),
            show_giver_name_to_json=_dump_types(question.show_giver_name_to),
            show_recipient_name_to_json=_dump_types(question.show_recipient_name_to),
            show_missing_responses=question.show_missing_responses,
        )
        self._add(record, "insert question")
        return question

    # ── Responses ──────────────────────────────────────────

    def get_responses_for_question(self, question_id: str, section: Optional[str] = None) -> list[FeedbackResponse]:
        """
        Responses to one question.

        Args:
            question_id: Question identifier
            section: When given, only responses whose giver or recipient is in it

        Returns:
            List of FeedbackResponse in submission order
        """
        query = self.db.query(FeedbackResponseRecord).filter(FeedbackResponseRecord.question_id == question_id)
        if section is not None:
            query = query.filter(_section_criterion(SectionFilter.IN_SECTION, section))
        rows = query.order_by(FeedbackResponseRecord.created_at, FeedbackResponseRecord.id).all()
        return [_response_to_domain(r) for r in rows]

    def get_responses_for_session(
        self,
        course_id: str,
        session_name: str,
        origin: Optional[SectionFilter] = None,
        section: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[FeedbackResponse]:
        """
        Responses of a whole session.

        Args:
            course_id: Course identifier
            session_name: Session name
            origin: Which side of the response must lie in ``section``
            section: Section to restrict to; None means every section
            limit: Maximum number of rows to return; None means unbounded

        Returns:
            List of FeedbackResponse in submission order
        """
        query = self.db.query(FeedbackResponseRecord).filter(
            FeedbackResponseRecord.course_id == course_id,
            FeedbackResponseRecord.session_name == session_name,
        )
        if section is not None and origin is not None:
            query = query.filter(_section_criterion(origin, section))
        query = query.order_by(FeedbackResponseRecord.created_at, FeedbackResponseRecord.id)
        if limit is not None:
            query = query.limit(limit)
        return [_response_to_domain(r) for r in query.all()]

    def get_responses_from_giver(self, course_id: str, session_name: str, giver_email: str) -> list[FeedbackResponse]:
        rows = (
            self.db.query(FeedbackResponseRecord)
            .filter(
                FeedbackResponseRecord.course_id == course_id,
                FeedbackResponseRecord.session_name == session_name,
                FeedbackResponseRecord.giver_email == giver_email,
            )
            .order_by(FeedbackResponseRecord.created_at, FeedbackResponseRecord.id)
            .all()
        )
        return [_response_to_domain(r) for r in rows]

    def create_response(self, response: FeedbackResponse) -> FeedbackResponse:
        record = FeedbackResponseRecord(
            id=response.id,
            question_id=response.question_id,
            course_id=response.course_id,
            session_name=response.session_name,
            giver_email=response.giver_email,
            giver_section=response.giver_section,
            recipient_email=response.recipient_email,
            recipient_section=response.recipient_section,
            answer=response.answer,
            is_anonymous=response.is_anonymous,
            created_at=response.created_at,
        )
        self._add(record, "insert response")
        return response

    # ── Comments ───────────────────────────────────────────

    def get_comments_for_session(
        self,
        course_id: str,
        session_name: str,
        section: Optional[str] = None,
    ) -> list[ResponseComment]:
        """Comments of a session, optionally restricted to a giver or recipient section."""
        query = self.db.query(ResponseCommentRecord).filter(
            ResponseCommentRecord.course_id == course_id,
            ResponseCommentRecord.session_name == session_name,
        )
        if section is not None:
            query = query.filter(
                or_(
                    ResponseCommentRecord.giver_section == section,
                    ResponseCommentRecord.recipient_section == section,
                )
            )
        rows = query.order_by(ResponseCommentRecord.created_at, ResponseCommentRecord.id).all()
        return [_comment_to_domain(r) for r in rows]

    def create_comment(self, comment: ResponseComment) -> ResponseComment:
        record = ResponseCommentRecord(
            id=comment.id,
            course_id=comment.course_id,
            session_name=comment.session_name,
            question_id=comment.question_id,
            response_id=comment.response_id,
            author_email=comment.author_email,
            comment_text=comment.comment_text,
            giver_section=comment.giver_section,
            recipient_section=comment.recipient_section,
            show_comment_to_json=_dump_optional_types(comment.show_comment_to),
            show_giver_name_to_json=_dump_optional_types(comment.show_giver_name_to),
            created_at=comment.created_at,
        )
        self._add(record, "insert comment")
        return comment

    # ── Private helpers ───────────────────────────────────

    def _add(self, record, operation: str) -> None:
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Feedback store {operation} failed: {e}")
            raise DatabaseException(operation, e)


def _section_criterion(origin: SectionFilter, section: str):
    if origin == SectionFilter.FROM_SECTION:
        return FeedbackResponseRecord.giver_section == section
    if origin == SectionFilter.TO_SECTION:
        return FeedbackResponseRecord.recipient_section == section
    return or_(
        FeedbackResponseRecord.giver_section == section,
        FeedbackResponseRecord.recipient_section == section,
    )


def _dump_types(types: set[ParticipantType]) -> str:
    return json.dumps(sorted(t.value for t in types))


def _dump_optional_types(types: Optional[set[ParticipantType]]) -> Optional[str]:
    return None if types is None else _dump_types(types)


def _load_types(raw: Optional[str]) -> Optional[set[ParticipantType]]:
    if raw is None:
        return None
    return {ParticipantType(value) for value in json.loads(raw)}


def _question_to_domain(record: FeedbackQuestionRecord) -> FeedbackQuestion:
    return FeedbackQuestion(
        id=record.id,
        course_id=record.course_id,
        session_name=record.session_name,
        question_number=record.question_number,
        question_text=record.question_text,
        question_type=record.question_type,
        options=json.loads(record.options_json or "[]"),
        giver_type=record.giver_type,
        recipient_type=record.recipient_type,
        show_responses_to=_load_types(record.show_responses_to_json) or set(),
        show_giver_name_to=_load_types(record.show_giver_name_to_json) or set(),
        show_recipient_name_to=_load_types(record.show_recipient_name_to_json) or set(),
        show_missing_responses=record.show_missing_responses,
    )


def _response_to_domain(record: FeedbackResponseRecord) -> FeedbackResponse:
    return FeedbackResponse(
        question_id=record.question_id,
        course_id=record.course_id,
        session_name=record.session_name,
        giver_email=record.giver_email,
        giver_section=record.giver_section,
        recipient_email=record.recipient_email,
        recipient_section=record.recipient_section,
        answer=record.answer,
        is_anonymous=record.is_anonymous,
        created_at=record.created_at,
    )


def _comment_to_domain(record: ResponseCommentRecord) -> ResponseComment:
    return ResponseComment(
        id=record.id,
        course_id=record.course_id,
        session_name=record.session_name,
        question_id=record.question_id,
        response_id=record.response_id,
        author_email=record.author_email,
        comment_text=record.comment_text,
        created_at=record.created_at,
        giver_section=record.giver_section,
        recipient_section=record.recipient_section,
        show_comment_to=_load_types(record.show_comment_to_json),
        show_giver_name_to=_load_types(record.show_giver_name_to_json),
    )
