"""Shared models - ORM entities and pydantic domain models."""
from shared.models.entities import (
    Base,
    StudentRecord,
    InstructorRecord,
    FeedbackSessionRecord,
    SessionRespondentRecord,
    FeedbackQuestionRecord,
    FeedbackResponseRecord,
    ResponseCommentRecord,
)
from shared.models.domain import (
    ParticipantType,
    Role,
    SessionType,
    QuestionType,
    RespondentKind,
    SectionFilter,
    Student,
    InstructorPrivileges,
    Instructor,
    FeedbackSession,
    FeedbackQuestion,
    FeedbackResponse,
    ResponseComment,
    make_response_id,
)

__all__ = [
    "Base",
    "StudentRecord",
    "InstructorRecord",
    "FeedbackSessionRecord",
    "SessionRespondentRecord",
    "FeedbackQuestionRecord",
    "FeedbackResponseRecord",
    "ResponseCommentRecord",
    "ParticipantType",
    "Role",
    "SessionType",
    "QuestionType",
    "RespondentKind",
    "SectionFilter",
    "Student",
    "InstructorPrivileges",
    "Instructor",
    "FeedbackSession",
    "FeedbackQuestion",
    "FeedbackResponse",
    "ResponseComment",
    "make_response_id",
]
