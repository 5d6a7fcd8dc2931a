"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StudentRecord(Base):
    """Students table - one row per enrolment in a course."""
    __tablename__ = "students"

    course_id = Column(String, primary_key=True)
    email = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    team = Column(String, nullable=False)
    section = Column(String, nullable=False, default="None")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_student_team", "course_id", "team"),
        Index("idx_student_section", "course_id", "section"),
    )


class InstructorRecord(Base):
    """Instructors table - privileges are stored as JSON."""
    __tablename__ = "instructors"

    course_id = Column(String, primary_key=True)
    email = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    privileges_json = Column(Text, nullable=True)  # JSON: InstructorPrivileges; NULL = co-owner defaults
    created_at = Column(DateTime, default=datetime.utcnow)


class FeedbackSessionRecord(Base):
    """Feedback sessions table."""
    __tablename__ = "feedback_sessions"

    course_id = Column(String, primary_key=True)
    session_name = Column(String, primary_key=True)
    session_type = Column(String, nullable=False, default="STANDARD")  # STANDARD, PRIVATE
    creator_email = Column(String, nullable=False)
    instructions = Column(Text, nullable=False, default="")
    visible_time = Column(DateTime, nullable=True)
    publish_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class SessionRespondentRecord(Base):
    """Respondent tracking - givers who have submitted at least one response.

    The unique constraint keeps concurrent adds of the same respondent idempotent.
    """
    __tablename__ = "session_respondents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(String, nullable=False)
    session_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    kind = Column(String, nullable=False)  # student, instructor
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("course_id", "session_name", "email", "kind", name="uq_session_respondent"),
        Index("idx_respondent_session", "course_id", "session_name"),
    )


class FeedbackQuestionRecord(Base):
    """Feedback questions table - participant type sets are stored as JSON lists."""
    __tablename__ = "feedback_questions"

    id = Column(String, primary_key=True)
    course_id = Column(String, nullable=False)
    session_name = Column(String, nullable=False)
    question_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="TEXT")  # TEXT, MCQ, NUMSCALE
    options_json = Column(Text, nullable=False, default="[]")
    giver_type = Column(String, nullable=False)
    recipient_type = Column(String, nullable=False)
    show_responses_to_json = Column(Text, nullable=False, default="[]")
    show_giver_name_to_json = Column(Text, nullable=False, default="[]")
    show_recipient_name_to_json = Column(Text, nullable=False, default="[]")
    show_missing_responses = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_question_session", "course_id", "session_name"),
    )


class FeedbackResponseRecord(Base):
    """Feedback responses table - id is question_id%giver%recipient."""
    __tablename__ = "feedback_responses"

    id = Column(String, primary_key=True)
    question_id = Column(String, ForeignKey("feedback_questions.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(String, nullable=False)
    session_name = Column(String, nullable=False)
    giver_email = Column(String, nullable=False)
    giver_section = Column(String, nullable=False, default="None")
    recipient_email = Column(String, nullable=False)
    recipient_section = Column(String, nullable=False, default="None")
    answer = Column(Text, nullable=False, default="")
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_response_session", "course_id", "session_name"),
        Index("idx_response_question", "question_id"),
    )


class ResponseCommentRecord(Base):
    """Response comments table - NULL visibility JSON means "follow the question"."""
    __tablename__ = "response_comments"

    id = Column(String, primary_key=True)
    course_id = Column(String, nullable=False)
    session_name = Column(String, nullable=False)
    question_id = Column(String, nullable=False)
    response_id = Column(String, ForeignKey("feedback_responses.id", ondelete="CASCADE"), nullable=False)
    author_email = Column(String, nullable=False)
    comment_text = Column(Text, nullable=False)
    giver_section = Column(String, nullable=False, default="None")
    recipient_section = Column(String, nullable=False, default="None")
    show_comment_to_json = Column(Text, nullable=True)
    show_giver_name_to_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_comment_session", "course_id", "session_name"),
    )
